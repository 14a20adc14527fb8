from __future__ import annotations

import pytest

from figtag.charts.models import ScatterPoint, SeriesPoint, ValidatedDescriptor
from figtag.charts.raster_renderer import render_png
from figtag.config.settings_loader import load_settings

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.mark.parametrize("chart_type", ["bar", "line", "pie"])
def test_series_charts_render_png(chart_type: str) -> None:
    config = load_settings().renderer.model_copy(update={"chart_format": "raster_file"})
    descriptor = ValidatedDescriptor(
        id="c1",
        name="Vendas",
        type=chart_type,  # type: ignore[arg-type]
        unit="R$",
        series=(SeriesPoint(label="Norte", value=10.0), SeriesPoint(label="Sul", value=20.0)),
    )

    payload = render_png(descriptor, config)

    assert payload.startswith(PNG_SIGNATURE)


def test_scatter_chart_renders_png() -> None:
    config = load_settings().renderer
    descriptor = ValidatedDescriptor(
        id="s1",
        name="Dispersao",
        type="scatter",
        points=(ScatterPoint(label="a", x=1.0, y=1.0), ScatterPoint(label="", x=1.0, y=1.0)),
    )

    assert render_png(descriptor, config).startswith(PNG_SIGNATURE)


def test_dollar_signs_in_text_are_rendered_literally() -> None:
    config = load_settings().renderer
    descriptor = ValidatedDescriptor(
        id="c1",
        name="Receita em US$ e R$",
        type="bar",
        series=(SeriesPoint(label="US$ 1", value=1.0), SeriesPoint(label="US$ 2", value=2.0)),
    )

    assert render_png(descriptor, config).startswith(PNG_SIGNATURE)
