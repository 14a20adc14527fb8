"""Data models for candidate indexing and fuzzy resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MatchStrategy(str, Enum):
    """Resolver cascade stages, highest priority first."""

    EXACT = "exact"
    NORMALIZED_SUBSTRING = "normalized_substring"
    REVERSE_SUBSTRING = "reverse_substring"
    WORD_OVERLAP = "word_overlap"


@dataclass(frozen=True)
class CandidateFile:
    """A listed file name with the normalized forms used for matching."""

    raw_name: str
    normalized_name: str
    extension: str
    stem: str
    compact_stem: str


@dataclass(frozen=True)
class CandidateIndex:
    """Recognized image candidates in listing order."""

    candidates: tuple[CandidateFile, ...] = ()
    extensions: frozenset[str] = field(default_factory=frozenset)

    def __len__(self) -> int:
        return len(self.candidates)

    @property
    def raw_names(self) -> list[str]:
        return [item.raw_name for item in self.candidates]


@dataclass(frozen=True)
class MatchRequest:
    """Trimmed payload of an image tag."""

    requested_name: str


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one resolution; candidate is None when unmatched."""

    matched: bool
    candidate: CandidateFile | None = None
    strategy_used: MatchStrategy | None = None
