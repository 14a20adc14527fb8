from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from figtag.charts.models import ScatterPoint, SeriesPoint, ValidatedDescriptor
from figtag.charts.svg_renderer import render_svg
from figtag.config.models import RendererConfig
from figtag.config.settings_loader import load_settings

SVG_NS = "{http://www.w3.org/2000/svg}"


@pytest.fixture(scope="module")
def config() -> RendererConfig:
    return load_settings().renderer


def _series_chart(chart_type: str, values: list[float], **extra: object) -> ValidatedDescriptor:
    return ValidatedDescriptor(
        id="c1",
        name="Vendas",
        type=chart_type,  # type: ignore[arg-type]
        series=tuple(
            SeriesPoint(label=f"Regiao {chr(65 + index)}", value=value)
            for index, value in enumerate(values)
        ),
        **extra,  # type: ignore[arg-type]
    )


def test_bar_chart_is_well_formed_svg_with_one_bar_per_entry(config: RendererConfig) -> None:
    markup = render_svg(_series_chart("bar", [10.0, 20.0, 5.0]), config)

    root = ET.fromstring(markup)
    assert root.tag == f"{SVG_NS}svg"
    assert root.attrib["width"] == "800"
    assert root.find(f"{SVG_NS}title").text == "Vendas"  # type: ignore[union-attr]
    bars = [rect for rect in root.iter(f"{SVG_NS}rect") if rect.attrib.get("rx") == "4"]
    assert len(bars) == 3


def test_svg_contains_no_scripts_or_external_references(config: RendererConfig) -> None:
    markup = render_svg(_series_chart("line", [1.0, 3.0, 2.0]), config)

    assert "<script" not in markup
    assert "href" not in markup


def test_line_chart_draws_single_path(config: RendererConfig) -> None:
    root = ET.fromstring(render_svg(_series_chart("line", [1.0, 3.0, 2.0]), config))

    paths = list(root.iter(f"{SVG_NS}path"))
    assert len(paths) == 1
    assert paths[0].attrib["d"].startswith("M ")
    assert paths[0].attrib["d"].count(" L ") == 2


def test_single_point_line_chart_renders(config: RendererConfig) -> None:
    root = ET.fromstring(render_svg(_series_chart("line", [4.0]), config))

    assert len(list(root.iter(f"{SVG_NS}circle"))) == 1


def test_constant_series_does_not_divide_by_zero(config: RendererConfig) -> None:
    markup = render_svg(_series_chart("bar", [0.0, 0.0]), config)

    assert "nan" not in markup.lower()
    assert "inf" not in markup.lower()


def test_pie_chart_has_slice_per_value_and_legend(config: RendererConfig) -> None:
    root = ET.fromstring(render_svg(_series_chart("pie", [1.0, 3.0], unit="%"), config))

    assert len(list(root.iter(f"{SVG_NS}path"))) == 2
    texts = [element.text or "" for element in root.iter(f"{SVG_NS}text")]
    assert "25.0%" in texts
    assert "Regiao B: 3 %" in texts


def test_pie_with_single_nonzero_value_draws_full_circle(config: RendererConfig) -> None:
    root = ET.fromstring(render_svg(_series_chart("pie", [0.0, 7.0]), config))

    assert len(list(root.iter(f"{SVG_NS}circle"))) == 1
    assert list(root.iter(f"{SVG_NS}path")) == []


def test_scatter_chart_plots_points(config: RendererConfig) -> None:
    descriptor = ValidatedDescriptor(
        id="s1",
        name="Altura x Peso",
        type="scatter",
        points=(
            ScatterPoint(label="Ana", x=1.6, y=55.0),
            ScatterPoint(label="", x=1.8, y=80.0),
        ),
    )

    root = ET.fromstring(render_svg(descriptor, config))

    assert len(list(root.iter(f"{SVG_NS}circle"))) == 2
    assert "Ana" in [element.text for element in root.iter(f"{SVG_NS}text")]


def test_text_is_escaped_and_brackets_neutralized(config: RendererConfig) -> None:
    descriptor = _series_chart("bar", [1.0]).model_copy(
        update={"name": "<b>[CHART:x]</b> & co"}
    )

    markup = render_svg(descriptor, config)

    assert "[CHART:" not in markup
    assert "<b>" not in markup
    root = ET.fromstring(markup)
    assert root.find(f"{SVG_NS}title").text == "<b>[CHART:x]</b> & co"  # type: ignore[union-attr]


def test_render_is_deterministic(config: RendererConfig) -> None:
    descriptor = _series_chart("bar", [3.0, 1.0])

    assert render_svg(descriptor, config) == render_svg(descriptor, config)


def test_palette_comes_from_config(config: RendererConfig) -> None:
    custom = config.model_copy(update={"palette": ["#111111"]})

    markup = render_svg(_series_chart("bar", [1.0, 2.0]), custom)

    assert markup.count('fill="#111111"') == 2
