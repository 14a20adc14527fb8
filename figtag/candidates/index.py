"""Candidate index over a flat listing of available file names.

The index never touches the file system; listing files is the caller's job.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

from figtag.candidates.models import CandidateFile, CandidateIndex

DEFAULT_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp", "svg"})

_TIMESTAMP_PREFIX_RE = re.compile(r"^\d+_")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def build_index(
    file_names: Iterable[str],
    extensions: Iterable[str] | None = None,
) -> CandidateIndex:
    """Build a searchable index from raw file names.

    Names whose extension is not a recognized image extension are dropped.
    Input order is preserved so that ties resolve to the first listed file.
    """

    allowed = (
        frozenset(ext.lower().lstrip(".") for ext in extensions)
        if extensions is not None
        else DEFAULT_IMAGE_EXTENSIONS
    )

    candidates: list[CandidateFile] = []
    for raw_name in file_names:
        extension = file_extension(raw_name)
        if extension is None or extension not in allowed:
            continue
        candidates.append(_build_candidate(raw_name, extension))

    return CandidateIndex(candidates=tuple(candidates), extensions=allowed)


def file_extension(name: str) -> str | None:
    """Return the lower-cased extension without the dot, or None."""

    base = name.rsplit("/", maxsplit=1)[-1]
    if "." not in base:
        return None
    extension = base.rsplit(".", maxsplit=1)[1].lower()
    return extension or None


def strip_timestamp(name: str) -> str:
    return _TIMESTAMP_PREFIX_RE.sub("", name, count=1)


def strip_extension(name: str, extensions: frozenset[str]) -> str:
    """Drop a trailing recognized extension; other dotted suffixes are kept."""

    extension = file_extension(name)
    if extension is None or extension not in extensions:
        return name
    return name[: -(len(extension) + 1)]


def compact(text: str) -> str:
    """Fold accents, lower-case and drop every non-alphanumeric character."""

    decomposed = unicodedata.normalize("NFD", text.lower())
    without_marks = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _NON_ALNUM_RE.sub("", without_marks)


def _build_candidate(raw_name: str, extension: str) -> CandidateFile:
    normalized = strip_timestamp(raw_name).lower()
    stem = normalized[: -(len(extension) + 1)]
    return CandidateFile(
        raw_name=raw_name,
        normalized_name=normalized,
        extension=extension,
        stem=stem,
        compact_stem=compact(stem),
    )
