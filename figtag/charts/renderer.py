"""Chart renderer: validated descriptor -> drawing -> registered artifact."""

from __future__ import annotations

import hashlib
import logging
import re

from figtag.charts.artifact_store import ArtifactStore, StagedArtifact
from figtag.charts.models import ChartDrawing, RenderedChart, ValidatedDescriptor
from figtag.charts.raster_renderer import render_png
from figtag.charts.svg_renderer import render_svg
from figtag.config.models import RendererConfig
from figtag.utils.errors import ArtifactPersistenceError
from figtag.utils.event_log import get_logger, log_event

logger = get_logger("renderer")

_UNSAFE_ID_CHARS_RE = re.compile(r"[^a-z0-9_-]")
_DIGEST_LENGTH = 12


class ChartRenderer:
    """Render validated descriptors with an explicit per-call configuration."""

    def __init__(self, config: RendererConfig, store: ArtifactStore | None = None) -> None:
        self._config = config
        self._store = store

    def draw(self, descriptor: ValidatedDescriptor) -> ChartDrawing:
        """Produce the artifact in memory; no I/O."""

        if self._config.chart_format == "raster_file":
            return ChartDrawing(
                chart_id=descriptor.id,
                format="raster_file",
                filename=artifact_filename(descriptor, "png", self._config),
                payload=render_png(descriptor, self._config),
            )
        return ChartDrawing(
            chart_id=descriptor.id,
            format="inline_vector",
            filename=artifact_filename(descriptor, "svg", self._config),
            markup=render_svg(descriptor, self._config),
        )

    def persist(self, drawing: ChartDrawing, caption: str = "") -> RenderedChart:
        """Register a drawing; raster drawings are written to the artifact store."""

        return self.commit(drawing, self.stage(drawing), caption)

    def stage(self, drawing: ChartDrawing) -> StagedArtifact | None:
        """Write the raster payload without publishing it; None for inline drawings."""

        if drawing.format == "inline_vector":
            return None
        return self._require_store(drawing).stage(
            drawing.filename, drawing.payload or b"", chart_id=drawing.chart_id
        )

    def commit(
        self, drawing: ChartDrawing, staged: StagedArtifact | None, caption: str = ""
    ) -> RenderedChart:
        if drawing.format == "inline_vector":
            return RenderedChart(
                id=drawing.chart_id,
                artifact=drawing.markup or "",
                format="inline_vector",
                caption=caption,
            )

        assert staged is not None
        path = self._require_store(drawing).commit(staged, chart_id=drawing.chart_id)
        log_event(
            logger,
            logging.INFO,
            "artifact_persisted",
            chart_id=drawing.chart_id,
            filename=path.name,
        )
        return RenderedChart(
            id=drawing.chart_id, artifact=path.name, format="raster_file", caption=caption
        )

    def discard(self, staged: StagedArtifact | None) -> None:
        if staged is not None and self._store is not None:
            self._store.discard(staged)

    def render(self, descriptor: ValidatedDescriptor) -> RenderedChart:
        return self.persist(self.draw(descriptor), caption=descriptor.caption)

    def _require_store(self, drawing: ChartDrawing) -> ArtifactStore:
        if self._store is None:
            raise ArtifactPersistenceError(
                "No artifact store configured for raster charts",
                chart_id=drawing.chart_id,
                filename=drawing.filename,
            )
        return self._store


def sanitize_chart_id(chart_id: str) -> str:
    return _UNSAFE_ID_CHARS_RE.sub("_", chart_id.lower())


def artifact_filename(
    descriptor: ValidatedDescriptor, extension: str, config: RendererConfig | None = None
) -> str:
    """Build `<sanitizedId>_<digest>.<ext>`; the digest pins descriptor and render settings."""

    canonical = descriptor.model_dump_json()
    if config is not None:
        canonical += config.model_dump_json()
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
    return f"{sanitize_chart_id(descriptor.id)}_{digest}.{extension}"
