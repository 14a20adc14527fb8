"""Conversion of generator chart payloads into ChartDescriptor objects.

Accepted shapes:
- {"series": [{"label": ..., "value": ...}, ...]}
- {"data": {"labels": [...], "values": [...]}}
- {"data": {"labels": [...], "datasets": [{"data": [...]}]}}
- {"data": {"data": [{"x": ..., "y": ...}, ...]}} for scatter charts

Portuguese type names (barra, linha, pizza, dispersao) map onto the canonical
chart types.

Anything unrecognized yields a descriptor with missing fields, which the
validator then rejects with a precise reason instead of raising here.
"""

from __future__ import annotations

import json
import unicodedata
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from figtag.charts.models import ChartDescriptor, SeriesEntry

_LABEL_KEYS = ("label", "name", "category", "x_label")
_TYPE_ALIASES = {"barra": "bar", "linha": "line", "pizza": "pie", "dispersao": "scatter"}


def descriptor_from_payload(raw: Any) -> ChartDescriptor:
    """Build a descriptor from one untrusted payload item."""

    if isinstance(raw, ChartDescriptor):
        return raw
    if not isinstance(raw, Mapping):
        return ChartDescriptor()

    chart_type = _canonical_type(raw.get("type"))
    is_scatter = isinstance(chart_type, str) and chart_type.strip().lower() == "scatter"

    series_raw = raw.get("series")
    if series_raw is None:
        series_raw = _series_from_data(raw.get("data"))

    series = _coerce_series(series_raw, is_scatter) if series_raw is not None else None
    description = raw.get("description")
    unit = raw.get("unit")
    if unit is None and isinstance(raw.get("data"), Mapping):
        unit = raw["data"].get("unit")

    return ChartDescriptor(
        id=raw.get("id"),
        name=raw.get("name"),
        type=chart_type,
        series=series,
        description="" if description is None else str(description),
        unit=None if unit is None else str(unit),
    )


def descriptors_from_payload(raw: Any) -> list[ChartDescriptor]:
    """Accept either a list of chart payloads or a {"charts": [...]} wrapper."""

    if isinstance(raw, Mapping):
        raw = raw.get("charts", [])
    if not isinstance(raw, list):
        raise ValueError("Chart payload must be a list or an object with a 'charts' list")
    return [descriptor_from_payload(item) for item in raw]


def load_descriptors(path: Path) -> list[ChartDescriptor]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid chart JSON: {path}") from exc
    return descriptors_from_payload(raw)


def _series_from_data(data: Any) -> list[Any] | None:
    if not isinstance(data, Mapping):
        return None

    labels = data.get("labels")
    values = data.get("values")
    if values is None:
        datasets = data.get("datasets")
        if isinstance(datasets, list) and datasets and isinstance(datasets[0], Mapping):
            values = datasets[0].get("data")

    if isinstance(values, list):
        label_list = labels if isinstance(labels, list) else []
        return [
            {"label": label_list[index] if index < len(label_list) else None, "value": value}
            for index, value in enumerate(values)
        ]

    points = data.get("data")
    if isinstance(points, list):
        return points
    return None


def _coerce_series(series_raw: Any, is_scatter: bool) -> list[SeriesEntry]:
    if not isinstance(series_raw, Iterable) or isinstance(series_raw, (str, bytes, Mapping)):
        return []
    return [_coerce_entry(item, is_scatter) for item in series_raw]


def _coerce_entry(item: Any, is_scatter: bool) -> SeriesEntry:
    if isinstance(item, Mapping):
        label = next((item[key] for key in _LABEL_KEYS if key in item), None)
        return SeriesEntry(label=label, value=item.get("value"), x=item.get("x"), y=item.get("y"))
    if isinstance(item, (list, tuple)) and len(item) == 2:
        first, second = item
        if is_scatter:
            return SeriesEntry(x=first, y=second)
        return SeriesEntry(label=first, value=second)
    return SeriesEntry(value=item)


def _canonical_type(chart_type: Any) -> Any:
    if not isinstance(chart_type, str):
        return chart_type
    decomposed = unicodedata.normalize("NFD", chart_type.strip().lower())
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _TYPE_ALIASES.get(folded, chart_type)
