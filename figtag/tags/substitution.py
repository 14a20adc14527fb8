"""Two-pass tag substitution for one article.

Pass A renders `[CHART:<id>]` tags; pass B resolves `[Imagem: <name>]` tags,
including the ones pass A produced for raster charts. Replacement splices the
matched spans from last to first, so document text is never used to build a
pattern and text outside recognized tags is preserved byte for byte.

Both passes are pure. Raster artifacts are only written to the store once the
last cancellation check has passed; if a write fails, the passes run again
with that chart rejected.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from figtag.candidates.index import build_index
from figtag.candidates.models import MatchResult
from figtag.candidates.resolver import resolve_name
from figtag.charts.artifact_store import ArtifactStore
from figtag.charts.models import ChartDescriptor, ChartDrawing
from figtag.charts.payload import descriptor_from_payload
from figtag.charts.renderer import ChartRenderer
from figtag.config.models import FigtagSettings
from figtag.orchestrator.workers import ChartJob, persist_with_timeout, render_charts
from figtag.tags.markup import chart_figure, image_figure, image_tag, public_url
from figtag.tags.models import (
    MalformedTag,
    RejectedChart,
    ResolutionLogEntry,
    ResolutionReport,
    ResolutionResult,
    ScanResult,
)
from figtag.tags.tag_scanner import scan_chart_tags, scan_image_tags
from figtag.utils.errors import ArtifactPersistenceError
from figtag.utils.event_log import get_logger, log_event

logger = get_logger("substitution")

_Piece = tuple[int, int, str]


class _Cancelled(Exception):
    pass


@dataclass
class _ChartRendering:
    scan: ScanResult
    jobs: dict[str, ChartJob] = field(default_factory=dict)
    duplicate_ids: set[str] = field(default_factory=set)


@dataclass
class _ChartPassResult:
    content: str
    pieces: list[_Piece] = field(default_factory=list)
    derived_files: list[str] = field(default_factory=list)
    captions: dict[str, str] = field(default_factory=dict)
    deferred: list[tuple[ChartDrawing, str]] = field(default_factory=list)


@dataclass
class _Substitution:
    content: str
    report: ResolutionReport
    deferred: list[tuple[ChartDrawing, str]]
    candidate_count: int


def resolve_document(
    content: str,
    available_files: Sequence[str] | None,
    pending_charts: Sequence[ChartDescriptor | Mapping[str, Any]],
    *,
    settings: FigtagSettings,
    store: ArtifactStore | None = None,
    cancel_event: threading.Event | None = None,
    persist_timeout: float | None = None,
) -> ResolutionResult:
    """Resolve chart and image tags in content.

    Args:
        content: Article text produced by the generator.
        available_files: Flat listing of file names, or None when the listing
            collaborator was unavailable.
        pending_charts: Chart descriptors (models or raw payload mappings).
        settings: Resolution and renderer settings for this call.
        store: Artifact store used for raster charts.
        cancel_event: When set before artifacts are committed, the original
            content is returned and nothing is persisted.
        persist_timeout: Seconds allowed for each artifact write.

    Returns:
        ResolutionResult with the rewritten content and a fresh report. Never
        raises for unresolvable tags, invalid descriptors or persistence errors.
    """

    renderer = ChartRenderer(settings.renderer, store)
    descriptors = [descriptor_from_payload(item) for item in pending_charts]
    listing = None if available_files is None else list(available_files)

    try:
        _check_cancel(cancel_event)
        rendering = _render_referenced(content, descriptors, renderer, settings)
        _check_cancel(cancel_event)
        substitution = _substitute(content, rendering, renderer, listing, settings, {})
        _check_cancel(cancel_event)
    except _Cancelled:
        log_event(logger, logging.INFO, "resolution_cancelled")
        return ResolutionResult(content=content, report=ResolutionReport(cancelled=True))

    failures = _persist_deferred(renderer, substitution.deferred, persist_timeout)
    if failures:
        substitution = _substitute(content, rendering, renderer, listing, settings, failures)

    report = substitution.report
    _log_outcome(report, substitution.candidate_count)
    log_event(
        logger,
        logging.INFO,
        "resolution_done",
        resolved_count=report.resolved_count,
        unresolved_count=len(report.unresolved_requests),
        rejected_count=len(report.rejected_charts),
    )
    return ResolutionResult(content=substitution.content, report=report)


def _render_referenced(
    content: str,
    descriptors: list[ChartDescriptor],
    renderer: ChartRenderer,
    settings: FigtagSettings,
) -> _ChartRendering:
    scan = scan_chart_tags(content)
    if not scan.tags:
        return _ChartRendering(scan=scan)

    referenced_ids = list(dict.fromkeys(tag.chart_id for tag in scan.tags))
    by_id, duplicate_ids = _index_descriptors(descriptors)
    renderable_ids = [
        chart_id
        for chart_id in referenced_ids
        if chart_id in by_id and chart_id not in duplicate_ids
    ]
    rendered_jobs = render_charts(
        [by_id[chart_id] for chart_id in renderable_ids], renderer, settings
    )
    return _ChartRendering(
        scan=scan,
        jobs=dict(zip(renderable_ids, rendered_jobs, strict=True)),
        duplicate_ids=duplicate_ids,
    )


def _substitute(
    content: str,
    rendering: _ChartRendering,
    renderer: ChartRenderer,
    listing: list[str] | None,
    settings: FigtagSettings,
    failures: dict[str, str],
) -> _Substitution:
    report = ResolutionReport()
    unresolved: list[tuple[int, str]] = []
    chart_pass = _run_chart_pass(content, rendering, renderer, failures, report, unresolved)
    resolved, candidate_count = _run_image_pass(chart_pass, listing, settings, report, unresolved)

    report.entries.sort(key=lambda entry: entry.start or 0)
    report.unresolved_requests = [text for _, text in sorted(unresolved, key=lambda item: item[0])]
    return _Substitution(
        content=resolved,
        report=report,
        deferred=chart_pass.deferred,
        candidate_count=candidate_count,
    )


def _run_chart_pass(
    content: str,
    rendering: _ChartRendering,
    renderer: ChartRenderer,
    failures: dict[str, str],
    report: ResolutionReport,
    unresolved: list[tuple[int, str]],
) -> _ChartPassResult:
    scan = rendering.scan
    _record_malformed(scan.malformed, report, unresolved)
    if not scan.tags:
        return _ChartPassResult(content=content)

    result = _ChartPassResult(content=content)
    replacements: dict[str, str] = {}
    targets: dict[str, str] = {}
    deferred_ids: set[str] = set()
    for chart_id in dict.fromkeys(tag.chart_id for tag in scan.tags):
        if chart_id in rendering.duplicate_ids:
            _reject(
                report, chart_id, "duplicate_id", "chart id appears in more than one descriptor"
            )
            continue
        job = rendering.jobs.get(chart_id)
        if job is None:
            _reject(report, chart_id, "descriptor_missing", "no descriptor supplied for chart id")
            continue
        if job.outcome.rejection is not None or job.drawing is None:
            rejection = job.outcome.rejection
            _reject(
                report,
                chart_id,
                rejection.code if rejection else "invalid_descriptor",
                rejection.message if rejection else "",
            )
            continue
        if chart_id in failures:
            _reject(report, chart_id, "artifact_persistence", failures[chart_id])
            continue

        drawing = job.drawing
        caption = job.outcome.descriptor.caption if job.outcome.descriptor else ""
        if drawing.format == "inline_vector":
            replacements[chart_id] = chart_figure(renderer.persist(drawing, caption))
            targets[chart_id] = drawing.filename
        else:
            replacements[chart_id] = image_tag(drawing.filename)
            targets[chart_id] = drawing.filename
            result.derived_files.append(drawing.filename)
            result.captions[drawing.filename] = caption
            result.deferred.append((drawing, caption))
            deferred_ids.add(chart_id)

    rejected_reasons = {item.id: item.reason for item in report.rejected_charts}
    for tag in scan.tags:
        replacement = replacements.get(tag.chart_id)
        if replacement is None:
            report.entries.append(
                ResolutionLogEntry(
                    status="rejected",
                    kind="chart",
                    token=tag.token,
                    payload=tag.chart_id,
                    start=tag.start,
                    reason=rejected_reasons.get(tag.chart_id),
                )
            )
            continue

        result.pieces.append((tag.start, tag.end, replacement))
        inline = tag.chart_id not in deferred_ids
        if inline:
            report.resolved_count += 1
        report.entries.append(
            ResolutionLogEntry(
                status="resolved",
                kind="chart",
                token=tag.token,
                payload=tag.chart_id,
                start=tag.start,
                target=targets[tag.chart_id],
                reason=None if inline else "deferred_to_image_pass",
            )
        )

    result.content = _splice(content, result.pieces)
    return result


def _run_image_pass(
    chart_pass: _ChartPassResult,
    listing: list[str] | None,
    settings: FigtagSettings,
    report: ResolutionReport,
    unresolved: list[tuple[int, str]],
) -> tuple[str, int]:
    content = chart_pass.content
    scan = scan_image_tags(content)
    _record_malformed(scan.malformed, report, unresolved, chart_pass.pieces)
    if not scan.tags:
        return content, 0

    index = build_index((listing or []) + chart_pass.derived_files, settings.image_extensions)
    derived = set(chart_pass.derived_files)
    cache: dict[str, MatchResult] = {}
    pieces: list[_Piece] = []

    for tag in scan.tags:
        if tag.requested_name not in cache:
            cache[tag.requested_name] = resolve_name(tag.requested_name, index)
        result = cache[tag.requested_name]
        kind = "chart" if tag.requested_name in derived else "image"
        source_start = _source_offset(tag.start, chart_pass.pieces)

        if not result.matched or result.candidate is None:
            unresolved.append((source_start, tag.requested_name))
            report.entries.append(
                ResolutionLogEntry(
                    status="unresolved",
                    kind=kind,
                    token=tag.token,
                    payload=tag.requested_name,
                    start=source_start,
                    reason="listing_unavailable" if listing is None else "no_match",
                )
            )
            continue

        filename = result.candidate.raw_name
        src = public_url(settings.public_url_prefix, filename)
        pieces.append(
            (
                tag.start,
                tag.end,
                image_figure(
                    src,
                    tag.requested_name,
                    settings.caption_prefix,
                    caption=chart_pass.captions.get(tag.requested_name),
                ),
            )
        )
        report.resolved_count += 1
        report.entries.append(
            ResolutionLogEntry(
                status="resolved",
                kind=kind,
                token=tag.token,
                payload=tag.requested_name,
                start=source_start,
                strategy=result.strategy_used.value if result.strategy_used else None,
                target=filename,
            )
        )

    return _splice(content, pieces), len(index)


def _persist_deferred(
    renderer: ChartRenderer,
    deferred: list[tuple[ChartDrawing, str]],
    timeout: float | None,
) -> dict[str, str]:
    failures: dict[str, str] = {}
    for drawing, caption in deferred:
        try:
            persist_with_timeout(renderer, drawing, caption=caption, timeout=timeout)
        except ArtifactPersistenceError as exc:
            failures[drawing.chart_id] = str(exc)
    return failures


def _index_descriptors(
    descriptors: list[ChartDescriptor],
) -> tuple[dict[str, ChartDescriptor], set[str]]:
    by_id: dict[str, ChartDescriptor] = {}
    duplicates: set[str] = set()
    for descriptor in descriptors:
        key = _descriptor_key(descriptor)
        if key is None:
            continue
        if key in by_id:
            duplicates.add(key)
            continue
        by_id[key] = descriptor
    return by_id, duplicates


def _descriptor_key(descriptor: ChartDescriptor) -> str | None:
    if isinstance(descriptor.id, bool):
        return None
    if isinstance(descriptor.id, (str, int)):
        return str(descriptor.id).strip() or None
    return None


def _reject(report: ResolutionReport, chart_id: str, reason: str, message: str) -> None:
    report.rejected_charts.append(RejectedChart(id=chart_id, reason=reason, message=message))


def _record_malformed(
    malformed: list[MalformedTag],
    report: ResolutionReport,
    unresolved: list[tuple[int, str]],
    pieces: list[_Piece] | None = None,
) -> None:
    for item in malformed:
        start = _source_offset(item.start, pieces or [])
        unresolved.append((start, item.text))
        report.entries.append(
            ResolutionLogEntry(
                status="malformed",
                kind=item.kind,
                token=item.text,
                start=start,
                reason=item.reason,
            )
        )


def _log_outcome(report: ResolutionReport, candidate_count: int) -> None:
    for rejected in report.rejected_charts:
        log_event(
            logger, logging.INFO, "chart_rejected", chart_id=rejected.id, reason=rejected.reason
        )
    for entry in report.entries:
        if entry.status == "unresolved":
            log_event(
                logger,
                logging.INFO,
                "tag_unresolved",
                requested_name=entry.payload,
                reason=entry.reason,
                candidate_count=candidate_count,
            )
        elif entry.status == "resolved" and entry.strategy is not None:
            log_event(
                logger,
                logging.DEBUG,
                "tag_resolved",
                requested_name=entry.payload,
                target=entry.target,
                strategy=entry.strategy,
            )


def _source_offset(position: int, pieces: list[_Piece]) -> int:
    """Map a position in spliced text back to the text the pieces were applied to.

    Positions inside a replacement map to the start of the span it replaced.
    """

    shift = 0
    for start, end, replacement in sorted(pieces, key=lambda item: item[0]):
        spliced_start = start + shift
        if position < spliced_start:
            break
        if position < spliced_start + len(replacement):
            return start
        shift += len(replacement) - (end - start)
    return position - shift


def _splice(content: str, pieces: list[_Piece]) -> str:
    result = content
    for start, end, replacement in sorted(pieces, key=lambda item: item[0], reverse=True):
        result = result[:start] + replacement + result[end:]
    return result


def _check_cancel(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise _Cancelled()
