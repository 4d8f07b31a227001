"""Chart specifications produced by the chart-spec stage.

A ``ChartSpec`` is a tagged union keyed on ``chartType``; every variant carries
only the fields that mean something for that chart. Serialize with
``by_alias=True, exclude_none=True`` so unused optional fields are absent.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter

ChartType = Literal["number", "bar", "line", "pie", "matrix"]
CHART_TYPES: tuple[str, ...] = ("number", "bar", "line", "pie", "matrix")


class _ChartBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)


class NumberChart(_ChartBase):
    chart_type: Literal["number"] = Field(default="number", alias="chartType")
    value: int | float


class _AxisChart(_ChartBase):
    x_axis: str = Field(alias="xAxis")
    y_axis: str = Field(alias="yAxis")
    data: list[dict[str, Any]]


class BarChart(_AxisChart):
    chart_type: Literal["bar"] = Field(default="bar", alias="chartType")


class LineChart(_AxisChart):
    chart_type: Literal["line"] = Field(default="line", alias="chartType")


class PieSlice(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    segment: str = Field(validation_alias=AliasChoices("segment", "category"))
    value: int | float
    color: str | None = None


class PieChart(_ChartBase):
    chart_type: Literal["pie"] = Field(default="pie", alias="chartType")
    data: list[PieSlice]


class MatrixChart(_ChartBase):
    chart_type: Literal["matrix"] = Field(default="matrix", alias="chartType")
    matrix: list[list[int | float | str]]
    row_labels: list[str] = Field(alias="rowLabels")
    column_labels: list[str] = Field(alias="columnLabels")


ChartSpec = Annotated[
    Union[NumberChart, BarChart, LineChart, PieChart, MatrixChart],
    Field(discriminator="chart_type"),
]

chart_spec_adapter: TypeAdapter[ChartSpec] = TypeAdapter(ChartSpec)


def dump_chart_spec(spec: ChartSpec) -> dict[str, Any]:
    """Serialize a chart spec for API consumers."""

    return spec.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "BarChart",
    "CHART_TYPES",
    "ChartSpec",
    "ChartType",
    "LineChart",
    "MatrixChart",
    "NumberChart",
    "PieChart",
    "PieSlice",
    "chart_spec_adapter",
    "dump_chart_spec",
]
