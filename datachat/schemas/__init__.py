"""Pydantic schemas exposed by the API."""

from .ai import (
    AskQuestionRequest,
    AskQuestionResponse,
    GenerateChartRequest,
    GenerateChartResponse,
)
from .charts import CHART_TYPES, ChartSpec, ChartType, chart_spec_adapter, dump_chart_spec
from .datasource import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    DataSourceCreate,
    DataSourceSummary,
    SQLRunRequest,
    SQLRunResponse,
    TableListResponse,
)

__all__ = [
    "AskQuestionRequest",
    "AskQuestionResponse",
    "CHART_TYPES",
    "ChartSpec",
    "ChartType",
    "ConnectionTestRequest",
    "ConnectionTestResponse",
    "DataSourceCreate",
    "DataSourceSummary",
    "GenerateChartRequest",
    "GenerateChartResponse",
    "SQLRunRequest",
    "SQLRunResponse",
    "TableListResponse",
    "chart_spec_adapter",
    "dump_chart_spec",
]
