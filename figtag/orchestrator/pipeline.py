"""Document-level resolution pipeline: list -> render -> substitute."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from figtag.charts.artifact_store import ArtifactStore
from figtag.charts.models import ChartDescriptor
from figtag.config.models import FigtagSettings
from figtag.config.settings_loader import load_settings
from figtag.orchestrator.workers import list_files_with_timeout
from figtag.tags.models import ResolutionReport, ResolutionResult
from figtag.tags.substitution import resolve_document

Lister = Callable[[], Iterable[str]]


def resolve_article(
    content: str,
    lister: Lister | None,
    pending_charts: Sequence[ChartDescriptor | Mapping[str, Any]],
    *,
    settings: FigtagSettings | None = None,
    store: ArtifactStore | None = None,
    cancel_event: threading.Event | None = None,
    listing_timeout: float | None = None,
    persist_timeout: float | None = None,
) -> ResolutionResult:
    """Resolve all tags of one article.

    The listing collaborator is called once, under a timeout; a failing or
    slow listing leaves image tags unresolved instead of failing the call.
    Timeouts default to the settings values.
    """

    effective = settings if settings is not None else load_settings()
    if cancel_event is not None and cancel_event.is_set():
        return ResolutionResult(content=content, report=ResolutionReport(cancelled=True))

    available_files: list[str] | None = []
    if lister is not None:
        available_files = list_files_with_timeout(
            lister,
            listing_timeout if listing_timeout is not None else effective.listing_timeout_seconds,
        )

    return resolve_document(
        content,
        available_files,
        pending_charts,
        settings=effective,
        store=store,
        cancel_event=cancel_event,
        persist_timeout=(
            persist_timeout if persist_timeout is not None else effective.persist_timeout_seconds
        ),
    )


def directory_lister(directory: Path) -> Lister:
    """Build a lister over the regular files of a flat directory."""

    def _list() -> list[str]:
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir() if entry.is_file())

    return _list
