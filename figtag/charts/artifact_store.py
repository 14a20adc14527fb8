"""Append-only on-disk store for rendered chart artifacts."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from figtag.utils.errors import ArtifactPersistenceError
from figtag.utils.event_log import get_logger, log_event

logger = get_logger("artifacts")


@dataclass(frozen=True)
class StagedArtifact:
    """Payload written next to its target but not yet visible under its name.

    tmp_path is None when the target already existed at staging time.
    """

    filename: str
    target: Path
    tmp_path: Path | None


class ArtifactStore:
    """Create-or-reuse artifact files under one directory.

    Files are staged in a temporary sibling and hard-linked into place on
    commit, so a name either does not exist or holds complete content. An
    existing file is never overwritten.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    def create(self, filename: str, payload: bytes, *, chart_id: str) -> Path:
        return self.commit(self.stage(filename, payload, chart_id=chart_id), chart_id=chart_id)

    def stage(self, filename: str, payload: bytes, *, chart_id: str) -> StagedArtifact:
        if not filename or "/" in filename or "\\" in filename or filename.startswith("."):
            raise ArtifactPersistenceError(
                f"Invalid artifact file name: {filename!r}", chart_id=chart_id, filename=filename
            )

        target = self._root / filename
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            if target.exists():
                return StagedArtifact(filename=filename, target=target, tmp_path=None)
            tmp_path = self._write_tmp(target, payload)
        except OSError as exc:
            raise ArtifactPersistenceError(
                f"Cannot persist artifact {filename}: {exc}", chart_id=chart_id, filename=filename
            ) from exc
        return StagedArtifact(filename=filename, target=target, tmp_path=tmp_path)

    def commit(self, staged: StagedArtifact, *, chart_id: str) -> Path:
        if staged.tmp_path is None:
            return staged.target
        try:
            os.link(staged.tmp_path, staged.target)
        except FileExistsError:
            # Same name implies same digest; first writer wins.
            pass
        except OSError as exc:
            raise ArtifactPersistenceError(
                f"Cannot persist artifact {staged.filename}: {exc}",
                chart_id=chart_id,
                filename=staged.filename,
            ) from exc
        finally:
            staged.tmp_path.unlink(missing_ok=True)
        return staged.target

    def discard(self, staged: StagedArtifact) -> None:
        """Drop a staged payload without publishing it."""

        if staged.tmp_path is None:
            return
        staged.tmp_path.unlink(missing_ok=True)
        log_event(logger, logging.INFO, "artifact_discarded", filename=staged.filename)

    def list_names(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self._root.iterdir()
            if entry.is_file() and not entry.name.endswith(".tmp")
        )

    def _write_tmp(self, target: Path, payload: bytes) -> Path:
        fd, raw_tmp_path = tempfile.mkstemp(
            dir=self._root,
            prefix=f"{target.name}.",
            suffix=".tmp",
        )
        tmp_path = Path(raw_tmp_path)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        return tmp_path
