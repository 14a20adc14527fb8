"""Embeddable markup for resolved tags."""

from __future__ import annotations

from urllib.parse import quote

from figtag.charts.models import RenderedChart
from figtag.utils.escaping import escape_markup


def public_url(prefix: str, filename: str) -> str:
    return f"{prefix}{quote(filename)}"


def image_figure(
    src: str, requested_name: str, caption_prefix: str, caption: str | None = None
) -> str:
    """Figure markup for an uploaded or materialized image.

    caption replaces the requested name in alt text and figcaption when given.
    """

    text = caption or requested_name
    alt = escape_markup(text)
    figcaption = escape_markup(f"{caption_prefix}{text}")
    return (
        '<figure class="article-figure">'
        f'<img src="{escape_markup(src)}" alt="{alt}" loading="lazy"/>'
        f"<figcaption>{figcaption}</figcaption>"
        "</figure>"
    )


def chart_figure(chart: RenderedChart) -> str:
    """Figure markup wrapping an inline SVG chart."""

    parts = [
        f'<figure class="article-chart" data-chart-id="{escape_markup(chart.id)}">',
        chart.artifact,
    ]
    if chart.caption:
        parts.append(f"<figcaption>{escape_markup(chart.caption)}</figcaption>")
    parts.append("</figure>")
    return "".join(parts)


def image_tag(filename: str) -> str:
    """Image tag handed to the image pass for a materialized chart file."""

    return f"[Imagem: {filename}]"
