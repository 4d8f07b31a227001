import json

from datachat.nl2sql.prompt_builder import (
    CHART_SYSTEM_PROMPT,
    build_chart_prompt,
    build_chart_tool,
    build_sql_prompt,
)

SCHEMA = "Table orders:\n  id integer NOT NULL PRIMARY KEY,\n  amount numeric"


def test_sql_prompt_embeds_schema_and_question_verbatim():
    prompt = build_sql_prompt(SCHEMA, "What is the total of all orders?")

    assert SCHEMA in prompt
    assert '"What is the total of all orders?"' in prompt
    assert "Return only the SQL query" in prompt
    assert "LIMIT" in prompt


def test_sql_prompt_for_empty_database():
    prompt = build_sql_prompt("", "How many users?")

    assert "(the database has no tables)" in prompt
    assert '"How many users?"' in prompt


def test_chart_prompt_samples_first_ten_rows_and_reports_total():
    rows = [{"day": f"2024-01-{i:02d}", "total": i} for i in range(1, 26)]

    prompt = build_chart_prompt("Daily totals", "line", rows)

    sample_start = prompt.index("[")
    sample_end = prompt.index("]", sample_start) + 1
    sample = json.loads(prompt[sample_start:sample_end])
    assert len(sample) == 10
    assert sample[0] == {"day": "2024-01-01", "total": 1}
    assert "Total rows available: 25" in prompt
    assert "Create a line chart" in prompt
    assert '"chartType": "line"' in prompt


def test_chart_prompt_serializes_non_json_values():
    from datetime import date
    from decimal import Decimal

    prompt = build_chart_prompt("Revenue", "bar", [{"day": date(2024, 1, 1), "revenue": Decimal("9.50")}])

    assert '"2024-01-01"' in prompt
    assert '"9.50"' in prompt


def test_chart_tool_constrains_chart_types():
    tool = build_chart_tool()

    assert tool["name"] == "generate_graph"
    schema = tool["input_schema"]
    assert schema["required"] == ["chartType", "chart"]
    assert schema["properties"]["chartType"]["enum"] == ["number", "bar", "line", "pie", "matrix"]
    assert schema["properties"]["chart"]["required"] == ["title"]


def test_chart_system_prompt_requires_tool_use():
    assert "MUST always use the generate_graph tool" in CHART_SYSTEM_PROMPT
