"""
SQL Safety Validation
Deterministic gate every statement passes before it reaches a target database
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from datachat.core.errors import SQLValidationError
from datachat.core.log import get_logger

from .config import pipeline_config

logger = get_logger(__name__)

_READ_ROOTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)

# Node classes differ slightly between sqlglot releases.
_WRITE_NODES = tuple(
    getattr(exp, name)
    for name in (
        "Insert",
        "Update",
        "Delete",
        "Drop",
        "Create",
        "Alter",
        "AlterTable",
        "TruncateTable",
        "Merge",
        "Command",
        "Grant",
        "Copy",
        "LoadData",
    )
    if hasattr(exp, name)
)


class SQLSafetyValidator:
    """Accept only a single read-only SELECT statement.

    Two layers run in order. The lexical layer normalizes the text (trim,
    lowercase) and requires a leading ``select``, forbids statement stacking and
    rejects blocked keywords as whole words. The structural layer parses the
    statement with sqlglot and walks the whole tree, so DML/DDL hidden in
    subqueries, ``SELECT ... INTO`` and calls to dangerous server functions
    are refused even when no blocked keyword appears in the text.
    """

    def __init__(
        self,
        blocked_keywords: Optional[Iterable[str]] = None,
        blocked_functions: Optional[Iterable[str]] = None,
        dialect: str = "postgres",
    ) -> None:
        keywords = [k.lower() for k in (blocked_keywords or pipeline_config.blocked_sql_keywords)]
        self._keyword_pattern = re.compile(
            r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b", re.IGNORECASE
        )
        self._blocked_functions = {
            f.lower() for f in (blocked_functions or pipeline_config.blocked_sql_functions)
        }
        self._dialect = dialect

    def validate(self, sql: object) -> None:
        """Raise ``SQLValidationError`` unless ``sql`` is safe to execute."""

        try:
            if not isinstance(sql, str):
                raise SQLValidationError("query must be a string")
            self._check_lexical(sql)
            self._check_structure(sql)
        except SQLValidationError as exc:
            logger.warning("Rejected SQL: %s", exc.reason)
            raise

    def is_safe(self, sql: object) -> bool:
        try:
            self.validate(sql)
        except SQLValidationError:
            return False
        return True

    def _check_lexical(self, sql: str) -> None:
        normalized = sql.strip().lower()

        if not normalized.startswith("select"):
            raise SQLValidationError("only SELECT queries are allowed")

        statements = [part for part in normalized.split(";") if part.strip()]
        if len(statements) > 1:
            raise SQLValidationError("multiple SQL statements are not allowed")

        match = self._keyword_pattern.search(normalized)
        if match:
            raise SQLValidationError(f"forbidden keyword '{match.group(1)}'")

    def _check_structure(self, sql: str) -> None:
        try:
            statements = [s for s in sqlglot.parse(sql, read=self._dialect) if s is not None]
        except SqlglotError as exc:
            raise SQLValidationError(f"query could not be parsed ({exc.__class__.__name__})") from exc

        if len(statements) != 1:
            raise SQLValidationError("exactly one statement is required")

        tree = statements[0]
        if not isinstance(tree, _READ_ROOTS):
            raise SQLValidationError(f"statement type {tree.key.upper()} is not allowed")

        for node in tree.walk():
            # walk() yields bare nodes on recent sqlglot, tuples on older releases
            if isinstance(node, tuple):
                node = node[0]
            if isinstance(node, _WRITE_NODES):
                raise SQLValidationError(f"nested {node.key.upper()} is not allowed")
            if isinstance(node, exp.Into):
                raise SQLValidationError("SELECT ... INTO is not allowed")
            if isinstance(node, exp.Func):
                name = self._function_name(node)
                if name in self._blocked_functions:
                    raise SQLValidationError(f"function '{name}' is not allowed")

    @staticmethod
    def _function_name(node: exp.Func) -> str:
        if isinstance(node, exp.Anonymous):
            return str(node.name).lower()
        return node.sql_name().lower()


default_validator = SQLSafetyValidator()


def validate_sql(sql: object) -> None:
    """Validate ``sql`` with the default validator."""

    default_validator.validate(sql)
