"""Bounded worker helpers for chart rendering and external collaborators."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import TypeVar

from figtag.charts.models import ChartDescriptor, ChartDrawing, RenderedChart, ValidationOutcome
from figtag.charts.renderer import ChartRenderer
from figtag.charts.validator import validate_descriptor
from figtag.config.models import FigtagSettings
from figtag.utils.errors import ArtifactPersistenceError
from figtag.utils.event_log import get_logger, log_event

logger = get_logger("workers")

_T = TypeVar("_T")


@dataclass(frozen=True)
class ChartJob:
    """Validation outcome plus the in-memory drawing for one descriptor."""

    descriptor: ChartDescriptor
    outcome: ValidationOutcome
    drawing: ChartDrawing | None = None


def prepare_chart(
    descriptor: ChartDescriptor, renderer: ChartRenderer, settings: FigtagSettings
) -> ChartJob:
    outcome = validate_descriptor(descriptor, settings)
    if outcome.descriptor is None:
        return ChartJob(descriptor=descriptor, outcome=outcome)
    return ChartJob(
        descriptor=descriptor,
        outcome=outcome,
        drawing=renderer.draw(outcome.descriptor),
    )


def render_charts(
    descriptors: Sequence[ChartDescriptor],
    renderer: ChartRenderer,
    settings: FigtagSettings,
) -> list[ChartJob]:
    """Validate and draw descriptors concurrently; results keep input order."""

    if not descriptors:
        return []

    max_workers = max(1, min(len(descriptors), settings.max_workers))
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="figtag-chart") as pool:
        return list(pool.map(lambda item: prepare_chart(item, renderer, settings), descriptors))


def persist_with_timeout(
    renderer: ChartRenderer,
    drawing: ChartDrawing,
    *,
    caption: str,
    timeout: float | None,
) -> RenderedChart:
    """Persist a drawing; a timeout surfaces as ArtifactPersistenceError.

    Only staging runs under the timeout. The artifact is published from the
    calling thread, and a staging write that finishes after the timeout is
    discarded instead of published.
    """

    if drawing.format == "inline_vector" or timeout is None:
        return renderer.persist(drawing, caption)

    try:
        staged = _call_with_timeout(
            lambda: renderer.stage(drawing), timeout, on_late=renderer.discard
        )
    except FutureTimeoutError as exc:
        raise ArtifactPersistenceError(
            f"Persisting {drawing.filename} timed out after {timeout}s",
            chart_id=drawing.chart_id,
            filename=drawing.filename,
        ) from exc
    return renderer.commit(drawing, staged, caption)


def list_files_with_timeout(
    lister: Callable[[], Iterable[str]], timeout: float
) -> list[str] | None:
    """Invoke the listing collaborator; None means the listing is unavailable."""

    try:
        return _call_with_timeout(lambda: list(lister()), timeout)
    except FutureTimeoutError:
        log_event(logger, logging.WARNING, "listing_unavailable", reason="timeout", timeout=timeout)
    except OSError as exc:
        log_event(logger, logging.WARNING, "listing_unavailable", reason="os_error", error=str(exc))
    return None


def _call_with_timeout(
    func: Callable[[], _T],
    timeout: float,
    *,
    on_late: Callable[[_T], None] | None = None,
) -> _T:
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="figtag-io")
    future = pool.submit(func)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        if on_late is not None:
            future.add_done_callback(lambda done: _hand_off_late_result(done, on_late))
        raise
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def _hand_off_late_result(future: Future[_T], on_late: Callable[[_T], None]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    on_late(future.result())
