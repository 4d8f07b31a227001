import pytest

from conftest import ScriptedProvider, text_response, tool_response
from datachat.nl2sql.chart_generator import ChartSpecGenerator, ChartValidationError, normalize_chart_type
from datachat.nl2sql.llm_providers import LLMProviderError
from datachat.schemas import dump_chart_spec
from datachat.schemas.charts import BarChart, MatrixChart, NumberChart, PieChart


@pytest.mark.parametrize(
    "label, expected",
    [
        ("bar", "bar"),
        ("Bar Chart", "bar"),
        ("line chart", "line"),
        ("doughnut", "pie"),
        ("KPI", "number"),
        ("heatmap", "matrix"),
        (None, ""),
    ],
)
def test_normalize_chart_type(label, expected):
    assert normalize_chart_type(label) == expected


async def test_forced_tool_call_yields_number_chart():
    provider = ScriptedProvider(
        tool_response("generate_graph", {"chartType": "number", "chart": {"title": "Total sales", "value": 30.0}})
    )

    spec = await ChartSpecGenerator(provider).generate_chart_spec("prompt", "number")

    assert isinstance(spec, NumberChart)
    assert spec.value == 30.0
    call = provider.calls[0]
    assert call["tool_choice"] == "generate_graph"
    assert call["tools"][0]["name"] == "generate_graph"
    assert "generate_graph" in call["system_prompt"]


async def test_bar_chart_keeps_only_its_own_fields():
    provider = ScriptedProvider(
        tool_response(
            "generate_graph",
            {
                "chartType": "bar",
                "chart": {
                    "title": "By customer",
                    "xAxis": "customer",
                    "yAxis": "amount",
                    "data": [{"customer": "ada", "amount": 10.5}],
                    "matrix": [[1]],
                },
            },
        )
    )

    spec = await ChartSpecGenerator(provider).generate_chart_spec("prompt", "bar")

    assert isinstance(spec, BarChart)
    assert dump_chart_spec(spec) == {
        "chartType": "bar",
        "title": "By customer",
        "xAxis": "customer",
        "yAxis": "amount",
        "data": [{"customer": "ada", "amount": 10.5}],
    }


async def test_legacy_chart_type_labels_are_normalized():
    provider = ScriptedProvider(
        tool_response(
            "generate_graph",
            {
                "chartType": "pie chart",
                "chart": {"title": "Share", "data": [{"category": "ada", "value": 10.5}]},
            },
        )
    )

    spec = await ChartSpecGenerator(provider).generate_chart_spec("prompt", "pie")

    assert isinstance(spec, PieChart)
    assert spec.data[0].segment == "ada"


async def test_missing_tool_call_degrades_to_none():
    provider = ScriptedProvider(text_response("I would draw a bar chart."))

    assert await ChartSpecGenerator(provider).generate_chart_spec("prompt", "bar") is None


async def test_provider_failure_degrades_to_none():
    provider = ScriptedProvider(LLMProviderError("openai API request failed with status 503"))

    assert await ChartSpecGenerator(provider).generate_chart_spec("prompt", "line") is None


async def test_invalid_payload_degrades_to_none():
    provider = ScriptedProvider(tool_response("generate_graph", {"chartType": "line", "chart": {"title": "No axes"}}))

    assert await ChartSpecGenerator(provider).generate_chart_spec("prompt", "line") is None


def test_parse_tool_input_falls_back_to_requested_type():
    spec = ChartSpecGenerator.parse_tool_input(
        {"chart": {"title": "Grid", "matrix": [[1, 2]], "rowLabels": ["r"], "columnLabels": ["a", "b"]}},
        "matrix",
    )

    assert isinstance(spec, MatrixChart)
    assert spec.column_labels == ["a", "b"]


def test_parse_tool_input_requires_chart_object():
    with pytest.raises(ChartValidationError, match="missing the 'chart' object"):
        ChartSpecGenerator.parse_tool_input({"chartType": "number"}, "number")
