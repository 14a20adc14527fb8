"""PNG chart rendering with matplotlib.

Uses the object API (Figure + FigureCanvasAgg) rather than pyplot so that
charts can be drawn from worker threads without touching global figure state.
"""

from __future__ import annotations

import io

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from figtag.charts.models import ValidatedDescriptor
from figtag.charts.scaling import axis_scale
from figtag.config.models import RendererConfig


def render_png(descriptor: ValidatedDescriptor, config: RendererConfig) -> bytes:
    """Render a validated descriptor into PNG bytes."""

    figure = Figure(
        figsize=(config.width / config.raster_dpi, config.height / config.raster_dpi),
        dpi=config.raster_dpi,
    )
    FigureCanvasAgg(figure)
    axes = figure.add_subplot(1, 1, 1)
    palette = list(config.palette)

    if descriptor.type == "scatter":
        xs = [point.x for point in descriptor.points]
        ys = [point.y for point in descriptor.points]
        axes.scatter(xs, ys, color=palette[0], alpha=0.8)
        x_scale = axis_scale(xs, include_zero=False)
        y_scale = axis_scale(ys, include_zero=False)
        axes.set_xlim(x_scale.low, x_scale.high)
        axes.set_ylim(y_scale.low, y_scale.high)
        for point in descriptor.points:
            if point.label:
                axes.annotate(_literal(point.label), (point.x, point.y), fontsize=8)
    elif descriptor.type == "pie":
        values = [point.value for point in descriptor.series]
        labels = [_literal(point.label) for point in descriptor.series]
        colors = [palette[index % len(palette)] for index in range(len(values))]
        axes.pie(
            values,
            labels=labels,
            colors=colors,
            autopct="%1.1f%%",
            startangle=90,
            counterclock=False,
        )
        axes.set_aspect("equal")
    else:
        values = [point.value for point in descriptor.series]
        labels = [_literal(point.label) for point in descriptor.series]
        positions = list(range(len(values)))
        scale = axis_scale(values, include_zero=True)
        if descriptor.type == "bar":
            colors = [palette[index % len(palette)] for index in positions]
            axes.bar(positions, values, color=colors, width=0.7)
        else:
            axes.plot(positions, values, color=palette[0], marker="o", linewidth=2)
        axes.set_xticks(positions)
        axes.set_xticklabels(labels)
        axes.set_ylim(scale.low, scale.high)
        axes.grid(axis="y", alpha=0.3)

    if descriptor.unit and descriptor.type != "pie":
        axes.set_ylabel(_literal(descriptor.unit))
    axes.set_title(_literal(descriptor.name), fontweight="bold")
    figure.tight_layout()

    buffer = io.BytesIO()
    figure.savefig(buffer, format="png", metadata={"Software": None})
    return buffer.getvalue()


def _literal(text: str) -> str:
    # Paired dollar signs would otherwise switch matplotlib into mathtext.
    return text.replace("$", r"\$")
