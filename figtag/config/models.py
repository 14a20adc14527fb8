"""Settings models for tag resolution and chart rendering."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChartFormat = Literal["inline_vector", "raster_file"]


class RendererConfig(BaseModel):
    """Per-call chart renderer configuration."""

    model_config = ConfigDict(extra="forbid")

    chart_format: ChartFormat
    width: int = Field(ge=200, le=4000)
    height: int = Field(ge=150, le=4000)
    palette: list[str] = Field(min_length=1)
    font_family: str
    raster_dpi: int = Field(ge=50, le=600)


class FigtagSettings(BaseModel):
    """Settings loaded from YAML.

    Rules:
    - image_extensions are stored lower-cased without the leading dot
    - placeholder_label_patterns must be valid regular expressions; they are
      matched in full against accent-folded, lower-cased labels
    """

    model_config = ConfigDict(extra="forbid")

    image_extensions: list[str] = Field(min_length=1)
    placeholder_label_patterns: list[str]
    public_url_prefix: str
    caption_prefix: str
    max_workers: int = Field(ge=1, le=64)
    listing_timeout_seconds: float = Field(gt=0)
    persist_timeout_seconds: float = Field(gt=0)
    renderer: RendererConfig

    @field_validator("image_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for item in value:
            ext = item.strip().lower().lstrip(".")
            if not ext:
                raise ValueError("image extension must not be empty")
            if ext not in normalized:
                normalized.append(ext)
        return normalized

    @field_validator("placeholder_label_patterns")
    @classmethod
    def _check_patterns(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid placeholder label pattern {pattern!r}: {exc}") from exc
        return value
