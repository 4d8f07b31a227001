"""Request and response bodies for the question and chart endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .charts import ChartType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AskQuestionRequest(_CamelModel):
    project_id: str = Field(min_length=1)
    question: str = Field(min_length=1)


class AskQuestionResponse(_CamelModel):
    sql: str
    result: list[dict[str, Any]]
    row_count: int


class GenerateChartRequest(_CamelModel):
    project_id: str = Field(min_length=1)
    user_prompt: str = Field(min_length=1)
    chart_type: ChartType


class GenerateChartResponse(_CamelModel):
    sql: str
    query_result: list[dict[str, Any]]
    chart_spec: dict[str, Any] | None = None
