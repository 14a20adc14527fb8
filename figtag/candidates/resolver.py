"""Fuzzy resolution of requested image names against a candidate index.

Rules:
- Stages run in order: exact, normalized substring, reverse substring,
  word overlap. The first stage with a hit wins.
- Within a stage the first candidate in listing order wins.
- Resolution is a pure function of (request, index).
"""

from __future__ import annotations

import re
from collections.abc import Callable

from figtag.candidates.index import compact, strip_extension
from figtag.candidates.models import (
    CandidateFile,
    CandidateIndex,
    MatchRequest,
    MatchResult,
    MatchStrategy,
)

_TOKEN_SPLIT_RE = re.compile(r"[_\-.\s]+")
_MIN_TOKEN_LENGTH = 3
_MIN_CONTAINED_STEM_LENGTH = 3


class _PreparedRequest:
    __slots__ = ("name", "stem", "compact_stem", "tokens")

    def __init__(self, request: MatchRequest, index: CandidateIndex) -> None:
        self.name = request.requested_name.strip().lower()
        self.stem = strip_extension(self.name, index.extensions)
        self.compact_stem = compact(self.stem)
        self.tokens = [
            token
            for token in _TOKEN_SPLIT_RE.split(self.stem)
            if len(token) >= _MIN_TOKEN_LENGTH
        ]


def resolve(request: MatchRequest, index: CandidateIndex) -> MatchResult:
    """Return the best candidate for request, or an unmatched result."""

    prepared = _PreparedRequest(request, index)
    if not prepared.name or not index.candidates:
        return MatchResult(matched=False)

    stages: list[tuple[MatchStrategy, Callable[[_PreparedRequest, CandidateFile], bool]]] = [
        (MatchStrategy.EXACT, _exact),
        (MatchStrategy.NORMALIZED_SUBSTRING, _normalized_substring),
        (MatchStrategy.REVERSE_SUBSTRING, _reverse_substring),
        (MatchStrategy.WORD_OVERLAP, _word_overlap),
    ]
    for strategy, predicate in stages:
        for candidate in index.candidates:
            if predicate(prepared, candidate):
                return MatchResult(matched=True, candidate=candidate, strategy_used=strategy)

    return MatchResult(matched=False)


def resolve_name(requested_name: str, index: CandidateIndex) -> MatchResult:
    return resolve(MatchRequest(requested_name=requested_name.strip()), index)


def _exact(request: _PreparedRequest, candidate: CandidateFile) -> bool:
    return request.name in (candidate.normalized_name, candidate.raw_name.lower())


def _normalized_substring(request: _PreparedRequest, candidate: CandidateFile) -> bool:
    if not request.compact_stem or not candidate.compact_stem:
        return False
    if request.compact_stem in candidate.compact_stem:
        return True
    return (
        len(candidate.compact_stem) >= _MIN_CONTAINED_STEM_LENGTH
        and candidate.compact_stem in request.compact_stem
    )


def _reverse_substring(request: _PreparedRequest, candidate: CandidateFile) -> bool:
    return bool(request.stem) and request.stem in candidate.normalized_name


def _word_overlap(request: _PreparedRequest, candidate: CandidateFile) -> bool:
    if not request.tokens:
        return False
    return all(token in candidate.normalized_name for token in request.tokens)
