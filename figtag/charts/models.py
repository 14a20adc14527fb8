"""Chart descriptor, validation and rendering models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ChartType = Literal["bar", "line", "pie", "scatter"]
SUPPORTED_CHART_TYPES: tuple[str, ...] = ("bar", "line", "pie", "scatter")

RejectionCode = Literal[
    "missing_field",
    "empty_id",
    "unsupported_type",
    "empty_series",
    "negative_pie_value",
    "zero_pie_total",
    "non_numeric_value",
    "non_finite_value",
    "value_out_of_range",
    "placeholder_label",
    "empty_label",
    "duplicate_label",
    "unpaired_scatter_point",
]


class SeriesEntry(BaseModel):
    """One raw series entry as emitted by the generator.

    Values are left untyped on purpose: the validator decides what is numeric.
    """

    model_config = ConfigDict(extra="ignore")

    label: Any = None
    value: Any = None
    x: Any = None
    y: Any = None


class ChartDescriptor(BaseModel):
    """Raw chart description supplied by the generative collaborator."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Any = None
    name: Any = None
    type: Any = None
    series: list[SeriesEntry] | None = None
    description: str = ""
    unit: str | None = None


class SeriesPoint(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    value: float


class ScatterPoint(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    x: float
    y: float


class ValidatedDescriptor(BaseModel):
    """Descriptor that passed every validation check; never mutated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str
    type: ChartType
    description: str = ""
    unit: str | None = None
    series: tuple[SeriesPoint, ...] = ()
    points: tuple[ScatterPoint, ...] = ()

    @property
    def caption(self) -> str:
        return self.description or self.name


class RejectionReason(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    code: RejectionCode
    message: str


class ValidationOutcome(BaseModel):
    """Either a validated descriptor or the reason it was rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chart_id: str | None
    descriptor: ValidatedDescriptor | None = None
    rejection: RejectionReason | None = None

    @property
    def ok(self) -> bool:
        return self.descriptor is not None


class ChartDrawing(BaseModel):
    """Rendered chart held in memory before it is embedded or persisted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chart_id: str
    format: Literal["inline_vector", "raster_file"]
    filename: str
    markup: str | None = None
    payload: bytes | None = None


class RenderedChart(BaseModel):
    """Chart artifact registered under the descriptor id.

    artifact holds SVG markup for inline_vector and the persisted file name
    for raster_file.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    artifact: str
    format: Literal["inline_vector", "raster_file"]
    caption: str = Field(default="")
