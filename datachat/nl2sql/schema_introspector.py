"""Render the live catalog of a target database as prompt context."""
from __future__ import annotations

from itertools import groupby
from typing import Any, Iterable, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection

SCHEMA_QUERY = text(
    """
    SELECT
        c.table_name,
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        (pk.column_name IS NOT NULL) AS is_primary_key
    FROM information_schema.columns c
    JOIN information_schema.tables t
      ON t.table_schema = c.table_schema
     AND t.table_name = c.table_name
    LEFT JOIN (
        SELECT kcu.table_schema, kcu.table_name, kcu.column_name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON kcu.constraint_schema = tc.constraint_schema
         AND kcu.constraint_name = tc.constraint_name
         AND kcu.table_name = tc.table_name
        WHERE tc.constraint_type = 'PRIMARY KEY'
    ) pk
      ON pk.table_schema = c.table_schema
     AND pk.table_name = c.table_name
     AND pk.column_name = c.column_name
    WHERE c.table_schema = :schema
    ORDER BY c.table_name, c.ordinal_position
    """
)

TABLES_QUERY = text(
    """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = :schema
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
    """
)


def render_column(row: Mapping[str, Any]) -> str:
    """``name type [NOT NULL] [PRIMARY KEY] [DEFAULT <expr>]``"""

    parts = [f"{row['column_name']} {row['data_type']}"]
    if str(row.get("is_nullable", "YES")).upper() == "NO":
        parts.append("NOT NULL")
    if row.get("is_primary_key"):
        parts.append("PRIMARY KEY")
    if row.get("column_default") is not None:
        parts.append(f"DEFAULT {row['column_default']}")
    return " ".join(parts)


def render_schema(rows: Iterable[Mapping[str, Any]]) -> str:
    """Group catalog rows by table and render them, tables in name order."""

    ordered = sorted(rows, key=lambda row: str(row["table_name"]))
    blocks = []
    for table_name, columns in groupby(ordered, key=lambda row: row["table_name"]):
        rendered = ",\n  ".join(render_column(column) for column in columns)
        blocks.append(f"Table {table_name}:\n  {rendered}")
    return "\n\n".join(blocks)


def describe_schema(connection: Connection, schema: str = "public") -> str:
    """Return the schema description; an empty database yields ``""``."""

    rows = connection.execute(SCHEMA_QUERY, {"schema": schema}).mappings().all()
    return render_schema(rows)


def list_tables(connection: Connection, schema: str = "public") -> list[str]:
    """Return base table names in ``schema``, alphabetically."""

    result = connection.execute(TABLES_QUERY, {"schema": schema})
    return [row[0] for row in result]
