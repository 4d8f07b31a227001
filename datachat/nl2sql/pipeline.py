"""
Question-to-SQL Orchestration
Credential resolution -> scoped connection -> schema -> prompt -> SQL -> validation -> execution
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import exc
from sqlalchemy.engine import Connection

from datachat.core.errors import ExecutionError
from datachat.core.log import get_logger, log_context, timeit
from datachat.schemas.charts import ChartSpec

from .chart_generator import ChartSpecGenerator
from .connection import ConnectionManager, driver_message
from .credentials import CredentialResolver
from .executor import QueryExecutor, QueryResult
from .llm_providers import LLMProvider
from .prompt_builder import build_chart_prompt, build_sql_prompt
from .schema_introspector import describe_schema
from .sql_generator import SQLGenerator
from .sql_validator import SQLSafetyValidator

logger = get_logger(__name__)


@dataclass
class AskQuestionResult:
    sql: str
    result: QueryResult

    @property
    def row_count(self) -> int:
        return self.result.row_count

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return self.result.records()


@dataclass
class GenerateChartResult:
    sql: str
    query_result: QueryResult
    chart_spec: Optional[ChartSpec] = None

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return self.query_result.records()


class QueryPipeline:
    """Answer questions over a registered database, optionally as a chart.

    All state is request-scoped: credentials, schema text, generated SQL and
    the connection pool are created per call and dropped when it returns.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        connection_manager: ConnectionManager,
        provider: LLMProvider,
        *,
        validator: Optional[SQLSafetyValidator] = None,
        executor: Optional[QueryExecutor] = None,
        schema: str = "public",
    ):
        self.resolver = resolver
        self.connection_manager = connection_manager
        self.validator = validator or SQLSafetyValidator()
        self.executor = executor or QueryExecutor()
        self.sql_generator = SQLGenerator(provider)
        self.chart_generator = ChartSpecGenerator(provider)
        self.schema = schema

    async def ask_question(
        self,
        project_id: str,
        question: str,
        owner_id: Optional[int] = None,
    ) -> AskQuestionResult:
        """Generate, validate and run SQL answering ``question``."""
        with log_context.scope(project_id=project_id):
            sql, result = await self._query(project_id, question, owner_id)
        return AskQuestionResult(sql=sql, result=result)

    async def generate_chart(
        self,
        project_id: str,
        user_prompt: str,
        chart_type: str,
        owner_id: Optional[int] = None,
    ) -> GenerateChartResult:
        """Run the question path, then ask for a chart spec over the rows.

        The chart stage only sees the executed result, so it runs after the
        target connection has been released. Its failure leaves ``chart_spec``
        unset instead of failing the request.
        """
        with log_context.scope(project_id=project_id, chart_type=chart_type):
            sql, result = await self._query(project_id, user_prompt, owner_id)

            chart_spec: Optional[ChartSpec] = None
            if result.row_count:
                prompt = build_chart_prompt(user_prompt, chart_type, result.records())
                chart_spec = await self.chart_generator.generate_chart_spec(prompt, chart_type)
            else:
                logger.info("Query returned no rows; skipping chart generation")

        return GenerateChartResult(sql=sql, query_result=result, chart_spec=chart_spec)

    async def _query(
        self,
        project_id: str,
        question: str,
        owner_id: Optional[int],
    ) -> tuple[str, QueryResult]:
        # Registry and target database calls block; keep them off the event loop.
        params = await asyncio.to_thread(self.resolver.resolve, project_id, owner_id)

        async with self.connection_manager.aconnect(params) as connection:
            schema_text = await asyncio.to_thread(self._describe, connection)
            prompt = build_sql_prompt(schema_text, question)

            sql = await self.sql_generator.generate_sql(prompt)
            self.validator.validate(sql)
            logger.info("Validated SQL: %s", sql)

            result = await asyncio.to_thread(self._execute, connection, sql)

        return sql, result

    def _execute(self, connection: Connection, sql: str) -> QueryResult:
        with timeit("Query execution", logger=logger) as timer:
            result = self.executor.execute(connection, sql)
            timer.set_count(result.row_count)
        return result

    def _describe(self, connection: Connection) -> str:
        with timeit("Schema introspection", logger=logger, unit="tables") as timer:
            try:
                schema_text = describe_schema(connection, self.schema)
            except exc.DBAPIError as error:
                raise ExecutionError(f"Schema introspection failed: {driver_message(error)}") from error
            timer.set_count(len(schema_text.split("\n\n")) if schema_text else 0)
        return schema_text
