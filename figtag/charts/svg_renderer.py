"""Self-contained SVG chart markup.

The output carries no scripts and no external references so it can be
embedded directly into article HTML. All text passes through _text(), which
also turns square brackets into character references: generated markup must
never contain tag syntax that a later scan would pick up.
"""

from __future__ import annotations

import math

from figtag.charts.models import ValidatedDescriptor
from figtag.charts.scaling import AxisScale, axis_scale, format_number
from figtag.config.models import RendererConfig
from figtag.utils.escaping import escape_markup

_MARGIN_TOP = 60
_MARGIN_RIGHT = 40
_MARGIN_BOTTOM = 80
_MARGIN_LEFT = 80
_AXIS_COLOR = "#374151"
_GRID_COLOR = "#e5e7eb"
_MUTED_COLOR = "#6b7280"
_TITLE_COLOR = "#1f2937"


class _Frame:
    """Plot area geometry for axis-based charts."""

    def __init__(self, config: RendererConfig) -> None:
        self.left = _MARGIN_LEFT
        self.top = _MARGIN_TOP
        self.width = config.width - _MARGIN_LEFT - _MARGIN_RIGHT
        self.height = config.height - _MARGIN_TOP - _MARGIN_BOTTOM
        self.bottom = self.top + self.height
        self.right = self.left + self.width

    def y_for(self, scale: AxisScale, value: float) -> float:
        return self.bottom - scale.fraction(value) * self.height

    def x_for(self, scale: AxisScale, value: float) -> float:
        return self.left + scale.fraction(value) * self.width


def render_svg(descriptor: ValidatedDescriptor, config: RendererConfig) -> str:
    """Render a validated descriptor as a standalone <svg> element."""

    if descriptor.type == "bar":
        body = _bar_body(descriptor, config)
    elif descriptor.type == "line":
        body = _line_body(descriptor, config)
    elif descriptor.type == "pie":
        body = _pie_body(descriptor, config)
    else:
        body = _scatter_body(descriptor, config)

    width = config.width
    height = config.height
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" role="img" '
        f'font-family="{_text(config.font_family)}">',
        f"<title>{_text(descriptor.name)}</title>",
        f'<rect width="{width}" height="{height}" fill="#ffffff"/>',
        f'<text x="{_c(width / 2)}" y="30" text-anchor="middle" fill="{_TITLE_COLOR}" '
        f'font-size="18" font-weight="bold">{_text(descriptor.name)}</text>',
        *body,
        "</svg>",
    ]
    return "".join(parts)


def _bar_body(descriptor: ValidatedDescriptor, config: RendererConfig) -> list[str]:
    frame = _Frame(config)
    values = [point.value for point in descriptor.series]
    scale = axis_scale(values, include_zero=True)
    parts = _y_axis(frame, scale, descriptor.unit)

    band = frame.width / len(values)
    bar_width = band * 0.7
    baseline = frame.y_for(scale, 0.0)
    for index, point in enumerate(descriptor.series):
        color = _color(config, index)
        x = frame.left + index * band + (band - bar_width) / 2
        top = frame.y_for(scale, point.value)
        y = min(top, baseline)
        bar_height = abs(baseline - top)
        center = x + bar_width / 2
        value_y = y - 8 if point.value >= 0 else y + bar_height + 16
        parts.append(
            f'<rect x="{_c(x)}" y="{_c(y)}" width="{_c(bar_width)}" height="{_c(bar_height)}" '
            f'fill="{color}" rx="4"/>'
        )
        parts.append(
            f'<text x="{_c(center)}" y="{_c(value_y)}" text-anchor="middle" fill="{_AXIS_COLOR}" '
            f'font-size="11" font-weight="bold">{format_number(point.value)}</text>'
        )
        parts.append(_category_label(center, frame.bottom + 20, point.label))

    parts.extend(_axes(frame, baseline))
    return parts


def _line_body(descriptor: ValidatedDescriptor, config: RendererConfig) -> list[str]:
    frame = _Frame(config)
    values = [point.value for point in descriptor.series]
    scale = axis_scale(values, include_zero=True)
    parts = _y_axis(frame, scale, descriptor.unit)

    count = len(values)
    step = frame.width / (count - 1) if count > 1 else 0.0
    coords: list[tuple[float, float]] = []
    for index, point in enumerate(descriptor.series):
        x = frame.left + index * step if count > 1 else frame.left + frame.width / 2
        coords.append((x, frame.y_for(scale, point.value)))

    path = " ".join(
        f"{'M' if index == 0 else 'L'} {_c(x)} {_c(y)}" for index, (x, y) in enumerate(coords)
    )
    color = _color(config, 0)
    parts.append(
        f'<path d="{path}" fill="none" stroke="{color}" stroke-width="3" '
        f'stroke-linecap="round" stroke-linejoin="round"/>'
    )
    for (x, y), point in zip(coords, descriptor.series, strict=True):
        parts.append(
            f'<circle cx="{_c(x)}" cy="{_c(y)}" r="4" fill="{color}" stroke="#ffffff" '
            f'stroke-width="2"/>'
        )
        parts.append(
            f'<text x="{_c(x)}" y="{_c(y - 10)}" text-anchor="middle" fill="{_AXIS_COLOR}" '
            f'font-size="11" font-weight="bold">{format_number(point.value)}</text>'
        )
        parts.append(_category_label(x, frame.bottom + 20, point.label))

    parts.extend(_axes(frame, frame.y_for(scale, 0.0)))
    return parts


def _pie_body(descriptor: ValidatedDescriptor, config: RendererConfig) -> list[str]:
    total = sum(point.value for point in descriptor.series)
    center_x = config.width * 0.4
    center_y = config.height / 2 + 20
    radius = min(config.width, config.height) / 3
    parts: list[str] = []

    angle = -90.0
    for index, point in enumerate(descriptor.series):
        color = _color(config, index)
        share = point.value / total
        sweep = share * 360.0
        if share >= 1.0:
            parts.append(
                f'<circle cx="{_c(center_x)}" cy="{_c(center_y)}" r="{_c(radius)}" '
                f'fill="{color}" stroke="#ffffff" stroke-width="2"/>'
            )
        elif share > 0:
            start = math.radians(angle)
            end = math.radians(angle + sweep)
            x1 = center_x + radius * math.cos(start)
            y1 = center_y + radius * math.sin(start)
            x2 = center_x + radius * math.cos(end)
            y2 = center_y + radius * math.sin(end)
            large_arc = 1 if sweep > 180 else 0
            parts.append(
                f'<path d="M {_c(center_x)} {_c(center_y)} L {_c(x1)} {_c(y1)} '
                f"A {_c(radius)} {_c(radius)} 0 {large_arc} 1 {_c(x2)} {_c(y2)} Z\" "
                f'fill="{color}" stroke="#ffffff" stroke-width="2"/>'
            )
        if share > 0:
            middle = math.radians(angle + sweep / 2)
            text_x = center_x + radius * 0.65 * math.cos(middle)
            text_y = center_y + radius * 0.65 * math.sin(middle)
            parts.append(
                f'<text x="{_c(text_x)}" y="{_c(text_y)}" text-anchor="middle" fill="#ffffff" '
                f'font-size="12" font-weight="bold">{share * 100:.1f}%</text>'
            )
        angle += sweep

    legend_x = config.width * 0.72
    for index, point in enumerate(descriptor.series):
        y = 70 + index * 25
        parts.append(
            f'<rect x="{_c(legend_x)}" y="{y - 11}" width="15" height="15" '
            f'fill="{_color(config, index)}"/>'
        )
        parts.append(
            f'<text x="{_c(legend_x + 22)}" y="{y + 1}" fill="{_AXIS_COLOR}" font-size="12">'
            f"{_text(point.label)}: {format_number(point.value)}{_unit_suffix(descriptor.unit)}"
            "</text>"
        )
    return parts


def _scatter_body(descriptor: ValidatedDescriptor, config: RendererConfig) -> list[str]:
    frame = _Frame(config)
    x_scale = axis_scale([point.x for point in descriptor.points], include_zero=False)
    y_scale = axis_scale([point.y for point in descriptor.points], include_zero=False)
    parts = _y_axis(frame, y_scale, descriptor.unit)

    for tick in x_scale.ticks():
        x = frame.x_for(x_scale, tick)
        parts.append(
            f'<line x1="{_c(x)}" y1="{frame.top}" x2="{_c(x)}" y2="{frame.bottom}" '
            f'stroke="{_GRID_COLOR}" stroke-width="0.5"/>'
        )
        parts.append(
            f'<text x="{_c(x)}" y="{frame.bottom + 20}" text-anchor="middle" '
            f'fill="{_MUTED_COLOR}" font-size="11">{format_number(tick)}</text>'
        )

    color = _color(config, 0)
    for point in descriptor.points:
        x = frame.x_for(x_scale, point.x)
        y = frame.y_for(y_scale, point.y)
        parts.append(
            f'<circle cx="{_c(x)}" cy="{_c(y)}" r="6" fill="{color}" stroke="#ffffff" '
            f'stroke-width="2" opacity="0.8"/>'
        )
        if point.label:
            parts.append(
                f'<text x="{_c(x + 9)}" y="{_c(y - 9)}" fill="{_MUTED_COLOR}" font-size="10">'
                f"{_text(point.label)}</text>"
            )

    parts.extend(_axes(frame, frame.bottom))
    return parts


def _y_axis(frame: _Frame, scale: AxisScale, unit: str | None) -> list[str]:
    parts: list[str] = []
    for tick in scale.ticks():
        y = frame.y_for(scale, tick)
        parts.append(
            f'<line x1="{frame.left}" y1="{_c(y)}" x2="{frame.right}" y2="{_c(y)}" '
            f'stroke="{_GRID_COLOR}" stroke-width="0.5"/>'
        )
        parts.append(
            f'<text x="{frame.left - 10}" y="{_c(y + 4)}" text-anchor="end" '
            f'fill="{_MUTED_COLOR}" font-size="11">{format_number(tick)}</text>'
        )
    if unit:
        middle = frame.top + frame.height / 2
        parts.append(
            f'<text x="25" y="{_c(middle)}" text-anchor="middle" fill="{_AXIS_COLOR}" '
            f'font-size="13" transform="rotate(-90, 25, {_c(middle)})">{_text(unit)}</text>'
        )
    return parts


def _axes(frame: _Frame, baseline: float) -> list[str]:
    return [
        f'<line x1="{frame.left}" y1="{frame.top}" x2="{frame.left}" y2="{frame.bottom}" '
        f'stroke="{_AXIS_COLOR}" stroke-width="2"/>',
        f'<line x1="{frame.left}" y1="{_c(baseline)}" x2="{frame.right}" y2="{_c(baseline)}" '
        f'stroke="{_AXIS_COLOR}" stroke-width="2"/>',
    ]


def _category_label(x: float, y: float, label: str) -> str:
    return (
        f'<text x="{_c(x)}" y="{_c(y)}" text-anchor="middle" fill="{_AXIS_COLOR}" '
        f'font-size="12">{_text(label)}</text>'
    )


def _color(config: RendererConfig, index: int) -> str:
    return _text(config.palette[index % len(config.palette)])


def _unit_suffix(unit: str | None) -> str:
    return f" {_text(unit)}" if unit else ""


def _text(value: str) -> str:
    return escape_markup(value)


def _c(value: float) -> str:
    return f"{value:.2f}"
