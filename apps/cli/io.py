"""CLI I/O helpers for atomic output writing."""

from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from figtag.tags.models import ResolutionReport, ResolutionResult


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single resolution run."""

    html: Path
    report: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    return OutputPaths(
        html=out_dir / "out.html",
        report=out_dir / "out.report.json",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    return [path for path in (paths.html, paths.report) if path.exists()]


def write_resolution_output_atomic(paths: OutputPaths, result: ResolutionResult) -> None:
    """Write resolved content and report using temporary files + replace."""

    paths.html.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_text(paths.html, result.content)
    _atomic_write_json(paths.report, result.report.model_dump(mode="json"))


def write_fallback_json_atomic(
    paths: OutputPaths,
    *,
    error_type: str,
    error_message: str,
    stage: str,
    base_report: ResolutionReport | None = None,
) -> None:
    """Write the report file with error metadata when a run cannot finish."""

    report = base_report if base_report is not None else ResolutionReport()
    payload = report.model_dump(mode="json")
    payload["error"] = {
        "error_type": error_type,
        "error_message": error_message,
        "stage": stage,
    }

    paths.report.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.report, payload)


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)


def _atomic_write_text(path: Path, text: str) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        newline="",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        tmp.write(text)

    try:
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
