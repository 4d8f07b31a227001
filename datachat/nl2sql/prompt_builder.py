"""Prompt assembly for the SQL and chart stages.

Everything here is pure string building: the SQL prompt embeds the live
schema description and the question verbatim, the chart prompt embeds a
sample of the query result plus one worked example per chart shape so the
forced tool call lines up with ``datachat.schemas.charts.ChartSpec``.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Sequence

from datachat.schemas.charts import CHART_TYPES

from .config import pipeline_config

SQL_GUIDELINES = (
    "- Uses SELECT * instead of listing specific columns, unless aggregates are needed\n"
    "- Applies JOINs if needed to access related tables\n"
    "- Filters data appropriately using WHERE\n"
    "- Orders results using ORDER BY when helpful\n"
    "- Uses aggregates like COUNT, SUM, or AVG when relevant\n"
    "- Includes a LIMIT clause if many rows could be returned\n"
    "- Is a single read-only SELECT statement"
)

CHART_SYSTEM_PROMPT = """You are an expert data visualization specialist. Your job is to analyze SQL query results and create appropriate chart configurations using the generate_graph tool.

CRITICAL: You MUST always use the generate_graph tool. Never respond with plain text.

Guidelines for each chart type:

1. NUMBER charts: Show a single KPI value
2. BAR charts: Compare categories or rankings
3. LINE charts: Show trends over time
4. PIE charts: Show proportions of a whole
5. MATRIX charts: Show cross-tabulated data

Always use the generate_graph tool with the correct structure for the requested chart type."""

_CHART_EXAMPLES = """For NUMBER chart:
{
  "chartType": "number",
  "chart": {"title": "Total Count", "value": 12345}
}

For BAR/LINE chart:
{
  "chartType": "%(chart_type)s",
  "chart": {
    "title": "Sales by Category",
    "xAxis": "category_name",
    "yAxis": "total_sales",
    "data": [
      {"category_name": "Electronics", "total_sales": 50000},
      {"category_name": "Clothing", "total_sales": 30000}
    ]
  }
}

For PIE chart:
{
  "chartType": "pie",
  "chart": {
    "title": "Distribution",
    "data": [
      {"segment": "Category A", "value": 40},
      {"segment": "Category B", "value": 60}
    ]
  }
}

For MATRIX chart:
{
  "chartType": "matrix",
  "chart": {
    "title": "Cross Analysis",
    "matrix": [[100, 200], [150, 250]],
    "rowLabels": ["Row 1", "Row 2"],
    "columnLabels": ["Col 1", "Col 2"]
  }
}"""


def build_sql_prompt(schema: str, question: str) -> str:
    """Build the instruction for the SQL generation stage."""

    schema_block = schema if schema else "(the database has no tables)"
    return (
        "You are an expert in writing PostgreSQL queries.\n\n"
        "Below is the database schema:\n"
        f"{schema_block}\n\n"
        "Based on the following question:\n"
        f'"{question}"\n\n'
        "Write a valid SQL query that:\n"
        f"{SQL_GUIDELINES}\n\n"
        "Return only the SQL query. Do not include any explanation, prose or comments."
    )


def build_chart_prompt(
    question: str,
    chart_type: str,
    rows: Sequence[Mapping[str, Any]],
    sample_size: int | None = None,
) -> str:
    """Build the instruction for the chart specification stage."""

    limit = sample_size if sample_size is not None else pipeline_config.chart_sample_rows
    sample = [dict(row) for row in rows[:limit]]
    sample_json = json.dumps(sample, indent=2, default=str)

    return (
        f'Create a {chart_type} chart based on this user request: "{question}"\n\n'
        f"Data sample (first {limit} rows):\n"
        f"{sample_json}\n\n"
        f"Total rows available: {len(rows)}\n\n"
        f"Use the {pipeline_config.chart_tool_name} tool to create a {chart_type} chart. Consider:\n"
        f"- The user specifically requested a {chart_type} chart\n"
        "- Choose appropriate fields from the data for labels and values\n"
        "- Create a meaningful title\n"
        "- Structure the data correctly for the chart type\n\n"
        "Examples of what to return:\n\n"
        f"{_CHART_EXAMPLES % {'chart_type': chart_type}}\n\n"
        f"IMPORTANT: Use the {pipeline_config.chart_tool_name} tool with the exact structure above."
    )


def build_chart_tool(name: str | None = None) -> Dict[str, Any]:
    """Return the tool definition that constrains the chart stage output."""

    return {
        "name": name or pipeline_config.chart_tool_name,
        "description": "Generate the structured chart specification for the requested chart type.",
        "input_schema": {
            "type": "object",
            "properties": {
                "chartType": {
                    "type": "string",
                    "enum": list(CHART_TYPES),
                    "description": "The type of chart to generate",
                },
                "chart": {
                    "type": "object",
                    "properties": {
                        "title": {"type": "string"},
                        "value": {"type": "number", "description": "number charts only"},
                        "xAxis": {"type": "string", "description": "bar/line charts: label field"},
                        "yAxis": {"type": "string", "description": "bar/line charts: value field"},
                        "data": {
                            "type": "array",
                            "items": {"type": "object", "additionalProperties": True},
                            "description": "bar/line rows, or pie {segment, value} slices",
                        },
                        "matrix": {
                            "type": "array",
                            "items": {
                                "type": "array",
                                "items": {"type": ["number", "string"]},
                            },
                            "description": "matrix charts: 2-D grid of values",
                        },
                        "rowLabels": {"type": "array", "items": {"type": "string"}},
                        "columnLabels": {"type": "array", "items": {"type": "string"}},
                    },
                    "required": ["title"],
                },
            },
            "required": ["chartType", "chart"],
        },
    }
