"""Validation of generator-supplied chart descriptors.

Checks run in a fixed order and the first failure rejects the whole
descriptor:
1. required fields (id, name, type, series) and a non-empty id
2. supported chart type
3. non-empty series; pie values non-negative with a positive total
4. every value a finite real number of bounded magnitude
5. labels present, not generic placeholders, not duplicated
6. scatter entries carry paired coordinates
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any

from figtag.charts.models import (
    SUPPORTED_CHART_TYPES,
    ChartDescriptor,
    RejectionCode,
    RejectionReason,
    ScatterPoint,
    SeriesEntry,
    SeriesPoint,
    ValidatedDescriptor,
    ValidationOutcome,
)
from figtag.config.models import FigtagSettings
from figtag.utils.errors import InvalidChartDescriptorError

_NUMERIC_STRING_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_LABEL_SEPARATORS_RE = re.compile(r"[_\-]+")
_WHITESPACE_RE = re.compile(r"\s+")

# Keeps axis spans, tick steps and pie totals finite in both renderers.
_MAX_MAGNITUDE = 1e100


class _Rejected(Exception):
    def __init__(self, code: RejectionCode, message: str) -> None:
        super().__init__(message)
        self.reason = RejectionReason(code=code, message=message)


def validate_descriptor(
    descriptor: ChartDescriptor, settings: FigtagSettings
) -> ValidationOutcome:
    """Validate one descriptor; never raises for bad descriptor content."""

    chart_id = _text_or_none(descriptor.id)
    try:
        validated = _validate(descriptor, settings)
    except _Rejected as rejected:
        return ValidationOutcome(chart_id=chart_id, rejection=rejected.reason)
    return ValidationOutcome(chart_id=validated.id, descriptor=validated)


def require_valid(descriptor: ChartDescriptor, settings: FigtagSettings) -> ValidatedDescriptor:
    """Strict variant of validate_descriptor for callers that want an exception."""

    outcome = validate_descriptor(descriptor, settings)
    if outcome.descriptor is None:
        assert outcome.rejection is not None
        raise InvalidChartDescriptorError(
            f"Chart descriptor rejected: {outcome.rejection.message}",
            chart_id=outcome.chart_id,
            rejection=outcome.rejection,
        )
    return outcome.descriptor


def normalize_label(label: str) -> str:
    decomposed = unicodedata.normalize("NFD", label.lower())
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    folded = _LABEL_SEPARATORS_RE.sub(" ", folded)
    return _WHITESPACE_RE.sub(" ", folded).strip()


def _validate(descriptor: ChartDescriptor, settings: FigtagSettings) -> ValidatedDescriptor:
    chart_id, name, chart_type, series = _check_required(descriptor)
    _check_type(chart_type)
    _check_series_shape(chart_type, series)
    _check_values(chart_type, series)
    labels = _check_labels(chart_type, series, settings.placeholder_label_patterns)

    if chart_type == "scatter":
        points = tuple(
            ScatterPoint(label=label, x=x, y=y)
            for label, (x, y) in zip(labels, _scatter_pairs(series), strict=True)
        )
        return ValidatedDescriptor(
            id=chart_id,
            name=name,
            type="scatter",
            description=descriptor.description.strip(),
            unit=descriptor.unit,
            points=points,
        )

    points_1d = tuple(
        SeriesPoint(label=label, value=_number_or_raise(entry.value))
        for label, entry in zip(labels, series, strict=True)
    )
    return ValidatedDescriptor(
        id=chart_id,
        name=name,
        type=chart_type,  # type: ignore[arg-type]
        description=descriptor.description.strip(),
        unit=descriptor.unit,
        series=points_1d,
    )


def _check_required(descriptor: ChartDescriptor) -> tuple[str, str, str, list[SeriesEntry]]:
    missing = [
        field_name
        for field_name in ("id", "name", "type", "series")
        if getattr(descriptor, field_name) is None
    ]
    if missing:
        raise _Rejected("missing_field", f"missing required fields: {', '.join(missing)}")

    chart_id = _text_or_none(descriptor.id)
    if not chart_id:
        raise _Rejected("empty_id", "chart id is empty")

    name = _text_or_none(descriptor.name)
    if not name:
        raise _Rejected("missing_field", "chart name is empty")

    if not isinstance(descriptor.type, str):
        raise _Rejected("unsupported_type", f"chart type must be a string, got {descriptor.type!r}")

    assert descriptor.series is not None
    return chart_id, name, descriptor.type.strip().lower(), descriptor.series


def _check_type(chart_type: str) -> None:
    if chart_type not in SUPPORTED_CHART_TYPES:
        raise _Rejected(
            "unsupported_type",
            f"unsupported chart type {chart_type!r}; expected one of "
            f"{', '.join(SUPPORTED_CHART_TYPES)}",
        )


def _check_series_shape(chart_type: str, series: list[SeriesEntry]) -> None:
    if not series:
        raise _Rejected("empty_series", "chart series is empty")
    if chart_type != "pie":
        return

    parsed = [_parse_number(entry.value) for entry in series]
    for index, (status, number) in enumerate(parsed):
        if status == "ok" and number < 0:
            raise _Rejected(
                "negative_pie_value", f"pie value at position {index} is negative: {number:g}"
            )
    if all(status == "ok" for status, _ in parsed):
        total = sum(number for _, number in parsed)
        if total == 0:
            raise _Rejected("zero_pie_total", "pie values sum to zero")
        if not math.isfinite(total) or total > _MAX_MAGNITUDE:
            raise _Rejected("value_out_of_range", "pie values sum beyond the supported range")


def _check_values(chart_type: str, series: list[SeriesEntry]) -> None:
    for index, entry in enumerate(series):
        if chart_type == "scatter":
            raw_values = _scatter_raw_values(entry)
        else:
            raw_values = [entry.value]
        for raw in raw_values:
            status, _ = _parse_number(raw)
            if status == "non_numeric":
                raise _Rejected(
                    "non_numeric_value", f"value at position {index} is not numeric: {raw!r}"
                )
            if status == "non_finite":
                raise _Rejected(
                    "non_finite_value", f"value at position {index} is not finite: {raw!r}"
                )
            if status == "out_of_range":
                raise _Rejected(
                    "value_out_of_range",
                    f"value at position {index} exceeds the supported magnitude",
                )


def _check_labels(
    chart_type: str, series: list[SeriesEntry], patterns: list[str]
) -> list[str]:
    compiled = [re.compile(pattern) for pattern in patterns]
    labels: list[str] = []
    seen: dict[str, int] = {}

    for index, entry in enumerate(series):
        label = _text_or_none(entry.label) or ""
        labels.append(label)
        if not label:
            if chart_type == "scatter":
                continue
            raise _Rejected("empty_label", f"label at position {index} is empty")

        normalized = normalize_label(label)
        if any(pattern.fullmatch(normalized) for pattern in compiled):
            raise _Rejected(
                "placeholder_label", f"label {label!r} is a generic placeholder"
            )
        if normalized in seen:
            raise _Rejected(
                "duplicate_label",
                f"label {label!r} at position {index} duplicates position {seen[normalized]}",
            )
        seen[normalized] = index

    return labels


def _scatter_raw_values(entry: SeriesEntry) -> list[Any]:
    if entry.x is not None or entry.y is not None:
        return [value for value in (entry.x, entry.y) if value is not None]
    if isinstance(entry.value, (list, tuple)):
        return list(entry.value)
    return [entry.value]


def _scatter_pairs(series: list[SeriesEntry]) -> list[tuple[float, float]]:
    pairs: list[tuple[float, float]] = []
    for index, entry in enumerate(series):
        if entry.x is not None and entry.y is not None:
            pairs.append((_number_or_raise(entry.x), _number_or_raise(entry.y)))
            continue
        if isinstance(entry.value, (list, tuple)) and len(entry.value) == 2:
            pairs.append((_number_or_raise(entry.value[0]), _number_or_raise(entry.value[1])))
            continue
        raise _Rejected(
            "unpaired_scatter_point",
            f"scatter entry at position {index} does not carry an (x, y) pair",
        )
    return pairs


def _parse_number(raw: Any) -> tuple[str, float]:
    if isinstance(raw, bool) or raw is None:
        return "non_numeric", 0.0
    if isinstance(raw, int):
        try:
            number = float(raw)
        except OverflowError:
            return "out_of_range", 0.0
    elif isinstance(raw, float):
        number = raw
    elif isinstance(raw, str) and _NUMERIC_STRING_RE.fullmatch(raw.strip()):
        number = float(raw.strip())
    elif isinstance(raw, str) and raw.strip().lower() in {"nan", "inf", "+inf", "-inf", "infinity"}:
        return "non_finite", 0.0
    else:
        return "non_numeric", 0.0

    if not math.isfinite(number):
        return "non_finite", 0.0
    if abs(number) > _MAX_MAGNITUDE:
        return "out_of_range", 0.0
    return "ok", number


def _number_or_raise(raw: Any) -> float:
    status, number = _parse_number(raw)
    if status != "ok":
        raise _Rejected("non_numeric_value", f"value is not numeric: {raw!r}")
    return number


def _text_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return f"{value:g}" if isinstance(value, float) else str(value)
    if isinstance(value, str):
        return value.strip()
    return None