"""
Chart Specification Stage
Forces a single structured tool call and parses it into a ChartSpec
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import ValidationError

from datachat.core.errors import GenerationError
from datachat.core.log import get_logger
from datachat.schemas.charts import ChartSpec, chart_spec_adapter

from .config import pipeline_config
from .llm_providers import LLMProvider
from .llm_stage import LLMCallStage
from .prompt_builder import CHART_SYSTEM_PROMPT, build_chart_tool

logger = get_logger(__name__)

_TYPE_ALIASES = {
    "doughnut": "pie",
    "donut": "pie",
    "kpi": "number",
    "heatmap": "matrix",
}


class ChartValidationError(ValueError):
    """Raised when a tool call does not describe a valid chart."""


def normalize_chart_type(value: Any) -> str:
    """Map labels such as ``"bar chart"`` or ``"Line"`` onto the ChartSpec tags."""

    label = str(value or "").strip().lower()
    if label.endswith(" chart"):
        label = label[: -len(" chart")].strip()
    return _TYPE_ALIASES.get(label, label)


class ChartSpecGenerator:
    """Second LLM call of the chart path; degrades to ``None`` instead of failing."""

    def __init__(self, provider: LLMProvider, tool_name: Optional[str] = None):
        self.tool = build_chart_tool(tool_name)
        self.stage = LLMCallStage(provider, "chart_spec")

    async def generate_chart_spec(self, prompt: str, chart_type: str) -> Optional[ChartSpec]:
        """
        Ask the model for a chart specification

        Args:
            prompt: Output of ``build_chart_prompt``
            chart_type: Requested chart type, used when the call omits one

        Returns:
            Parsed ChartSpec, or None when no usable tool call came back
        """
        try:
            response = await self.stage.run(
                prompt,
                system_prompt=CHART_SYSTEM_PROMPT,
                tool=self.tool,
                force_tool=True,
                temperature=pipeline_config.chart_temperature,
            )
        except GenerationError as exc:
            logger.warning("Chart generation failed, returning data only: %s", exc)
            return None

        call = response.find_tool_call(self.tool["name"])
        if call is None:
            logger.warning("No %s tool call in chart response", self.tool["name"])
            return None

        try:
            spec = self.parse_tool_input(call.arguments, chart_type)
        except ChartValidationError as exc:
            logger.warning("Discarding invalid chart specification: %s", exc)
            return None

        if spec.chart_type != normalize_chart_type(chart_type):
            logger.info("Model produced a %s chart for a %s request", spec.chart_type, chart_type)
        return spec

    @staticmethod
    def parse_tool_input(arguments: Dict[str, Any], chart_type: str) -> ChartSpec:
        """Validate a ``{"chartType", "chart"}`` payload against the ChartSpec union."""

        chart = arguments.get("chart")
        if not isinstance(chart, dict):
            raise ChartValidationError("tool input is missing the 'chart' object")

        payload = dict(chart)
        payload["chartType"] = normalize_chart_type(arguments.get("chartType") or chart_type)
        try:
            return chart_spec_adapter.validate_python(payload)
        except ValidationError as exc:
            raise ChartValidationError(
                f"{payload['chartType']} chart failed validation with {exc.error_count()} error(s)"
            ) from exc
