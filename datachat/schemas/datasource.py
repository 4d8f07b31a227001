"""Schemas for registering and inspecting data sources."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConnectionTestRequest(_CamelModel):
    """Plaintext connection parameters as typed by the user."""

    host: str = Field(min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    database_name: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = ""
    kind: Literal["postgresql"] = "postgresql"


class DataSourceCreate(ConnectionTestRequest):
    project_id: str = Field(min_length=1, max_length=255)


class ConnectionTestResponse(_CamelModel):
    message: str


class DataSourceSummary(_CamelModel):
    id: int
    project_id: str
    kind: str
    database: str


class TableListResponse(_CamelModel):
    project_id: str
    tables: list[str]


class SQLRunRequest(_CamelModel):
    sql: str = Field(min_length=1)


class SQLRunResponse(_CamelModel):
    sql: str
    columns: list[str]
    rows: list[list[Any]]
    row_count: int
    duration_ms: float
    truncated: bool = False
