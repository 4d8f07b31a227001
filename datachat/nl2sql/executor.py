"""Execute validated SQL once and shape the result."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from time import perf_counter
from typing import Any, Dict, List, Optional

from sqlalchemy import exc
from sqlalchemy.engine import Connection

from datachat.core.errors import ConnectivityError, ExecutionError
from datachat.core.log import get_logger

from .connection import driver_message

logger = get_logger(__name__)


@dataclass
class QueryResult:
    """Rows returned by one statement.

    ``columns`` come from the first row's keys and are empty when no rows came
    back. ``row_count`` counts the rows returned, so when the executor's row cap
    cuts the result it equals the cap and ``truncated`` is set.
    """

    columns: List[str]
    rows: List[List[Any]]
    row_count: int
    duration_ms: float
    truncated: bool = False

    def records(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


class QueryExecutor:
    """Run a statement exactly once, with no retries."""

    def __init__(self, max_rows: Optional[int] = None) -> None:
        self.max_rows = max_rows

    def execute(self, connection: Connection, sql: str) -> QueryResult:
        start = perf_counter()
        try:
            # Raw driver execution: the text must reach the server unchanged,
            # colons and percent signs included.
            result = connection.exec_driver_sql(sql, execution_options={"no_parameters": True})
            if not result.returns_rows:
                fetched = []
            elif self.max_rows:
                fetched = result.fetchmany(self.max_rows + 1)
            else:
                fetched = result.fetchall()
            result.close()
        except exc.DBAPIError as error:
            if error.connection_invalidated:
                raise ConnectivityError(driver_message(error)) from error
            logger.warning("Query rejected by database: %s", driver_message(error))
            raise ExecutionError(driver_message(error)) from error
        except exc.SQLAlchemyError as error:
            raise ExecutionError(driver_message(error)) from error
        duration_ms = (perf_counter() - start) * 1000

        truncated = bool(self.max_rows) and len(fetched) > self.max_rows
        if truncated:
            fetched = fetched[: self.max_rows]

        columns = list(fetched[0]._mapping.keys()) if fetched else []
        rows = [[self._convert(value) for value in row] for row in fetched]

        logger.info(
            "Query returned %d rows in %.1f ms%s",
            len(rows),
            duration_ms,
            " (truncated)" if truncated else "",
        )
        return QueryResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            duration_ms=duration_ms,
            truncated=truncated,
        )

    @staticmethod
    def _convert(value: Any) -> Any:
        """Convert Decimal cells to float for JSON serialization"""
        if isinstance(value, Decimal):
            return float(value)
        return value
