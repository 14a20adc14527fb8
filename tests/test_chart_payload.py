from __future__ import annotations

import json
from pathlib import Path

import pytest

from figtag.charts.models import ChartDescriptor
from figtag.charts.payload import descriptor_from_payload, descriptors_from_payload, load_descriptors


def test_series_payload_is_kept_as_entries() -> None:
    descriptor = descriptor_from_payload(
        {
            "id": "c1",
            "name": "Demo",
            "type": "bar",
            "series": [{"label": "A", "value": 10}, {"label": "B", "value": "20"}],
        }
    )

    assert descriptor.id == "c1"
    assert descriptor.series is not None
    assert [(entry.label, entry.value) for entry in descriptor.series] == [("A", 10), ("B", "20")]


def test_labels_values_payload_is_zipped() -> None:
    descriptor = descriptor_from_payload(
        {
            "id": "c2",
            "name": "Vendas",
            "type": "pie",
            "data": {"labels": ["Norte", "Sul"], "values": [3, 7], "unit": "%"},
        }
    )

    assert descriptor.series is not None
    assert [(entry.label, entry.value) for entry in descriptor.series] == [("Norte", 3), ("Sul", 7)]
    assert descriptor.unit == "%"


def test_datasets_payload_uses_first_dataset() -> None:
    descriptor = descriptor_from_payload(
        {
            "id": "c3",
            "name": "Linha",
            "type": "line",
            "data": {"labels": ["Jan", "Fev"], "datasets": [{"data": [1, 2]}, {"data": [9, 9]}]},
        }
    )

    assert descriptor.series is not None
    assert [entry.value for entry in descriptor.series] == [1, 2]


def test_labels_shorter_than_values_leave_missing_labels() -> None:
    descriptor = descriptor_from_payload(
        {"id": "c", "name": "n", "type": "bar", "data": {"labels": ["A"], "values": [1, 2]}}
    )

    assert descriptor.series is not None
    assert descriptor.series[1].label is None


def test_scatter_points_and_pairs_are_coerced() -> None:
    descriptor = descriptor_from_payload(
        {
            "id": "s",
            "name": "Dispersao",
            "type": "Scatter",
            "data": {"data": [{"x": 1, "y": 2}, [3, 4]]},
        }
    )

    assert descriptor.series is not None
    assert (descriptor.series[0].x, descriptor.series[0].y) == (1, 2)
    assert (descriptor.series[1].x, descriptor.series[1].y) == (3, 4)


def test_pair_entries_for_category_charts_become_label_value() -> None:
    descriptor = descriptor_from_payload(
        {"id": "b", "name": "n", "type": "bar", "series": [["Norte", 5]]}
    )

    assert descriptor.series is not None
    assert (descriptor.series[0].label, descriptor.series[0].value) == ("Norte", 5)


@pytest.mark.parametrize(
    ("alias", "expected"),
    [("barra", "bar"), ("Linha", "line"), ("pizza", "pie"), ("Dispersão", "scatter")],
)
def test_portuguese_type_names_map_to_chart_types(alias: str, expected: str) -> None:
    descriptor = descriptor_from_payload({"id": "p", "name": "n", "type": alias, "series": []})

    assert descriptor.type == expected


def test_dispersao_alias_coerces_pairs_as_points() -> None:
    descriptor = descriptor_from_payload(
        {"id": "d", "name": "n", "type": "dispersao", "series": [[1, 2]]}
    )

    assert descriptor.series is not None
    assert (descriptor.series[0].x, descriptor.series[0].y) == (1, 2)


def test_unknown_type_is_kept_verbatim() -> None:
    descriptor = descriptor_from_payload({"id": "r", "name": "n", "type": "Radar"})

    assert descriptor.type == "Radar"


def test_non_mapping_payload_yields_empty_descriptor() -> None:
    assert descriptor_from_payload("not a chart") == ChartDescriptor()


def test_missing_series_stays_none() -> None:
    descriptor = descriptor_from_payload({"id": "x", "name": "n", "type": "bar"})

    assert descriptor.series is None


def test_descriptors_from_payload_accepts_wrapper_object() -> None:
    descriptors = descriptors_from_payload({"charts": [{"id": "a"}, {"id": "b"}]})

    assert [item.id for item in descriptors] == ["a", "b"]


def test_descriptors_from_payload_rejects_scalar() -> None:
    with pytest.raises(ValueError, match="Chart payload must be a list"):
        descriptors_from_payload(42)


def test_load_descriptors_raises_for_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "charts.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid chart JSON"):
        load_descriptors(path)


def test_load_descriptors_reads_list(tmp_path: Path) -> None:
    path = tmp_path / "charts.json"
    path.write_text(json.dumps([{"id": "c1", "name": "Demo", "type": "bar"}]), encoding="utf-8")

    assert [item.id for item in load_descriptors(path)] == ["c1"]
