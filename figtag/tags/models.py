"""Tag scan and document resolution report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TagKind = Literal["chart", "image"]


@dataclass(frozen=True)
class PendingChartTag:
    """A `[CHART:<id>]` occurrence awaiting rendering."""

    token: str
    chart_id: str
    start: int
    end: int


@dataclass(frozen=True)
class PendingImageTag:
    """An `[Imagem: <name>]` occurrence awaiting fuzzy resolution."""

    token: str
    requested_name: str
    start: int
    end: int


PendingTag = PendingChartTag | PendingImageTag


@dataclass(frozen=True)
class MalformedTag:
    """A tag opener that cannot be processed; left verbatim in the document."""

    kind: TagKind
    reason: Literal["unterminated", "empty_payload"]
    text: str
    start: int
    end: int


@dataclass
class ScanResult:
    tags: list[PendingTag] = field(default_factory=list)
    malformed: list[MalformedTag] = field(default_factory=list)


class ResolutionLogEntry(BaseModel):
    """Single resolved/unresolved/rejected/malformed tag occurrence."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["resolved", "unresolved", "rejected", "malformed"]
    kind: TagKind
    token: str
    payload: str | None = None
    start: int | None = None
    strategy: str | None = None
    target: str | None = None
    reason: str | None = None


class RejectedChart(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    reason: str
    message: str = ""


class ResolutionReport(BaseModel):
    """Per-document summary; produced fresh for every resolution call.

    Rules:
    - resolved_count counts tag occurrences replaced by final markup
    - unresolved_requests lists image payloads (and malformed fragments) in
      document order, one item per occurrence
    - entries are ordered by start, an offset into the content as supplied;
      tags produced for raster charts carry the offset of their chart tag
    - rejected_charts holds one item per chart id
    """

    model_config = ConfigDict(extra="forbid")

    resolved_count: int = 0
    unresolved_requests: list[str] = Field(default_factory=list)
    rejected_charts: list[RejectedChart] = Field(default_factory=list)
    entries: list[ResolutionLogEntry] = Field(default_factory=list)
    cancelled: bool = False


class ResolutionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str
    report: ResolutionReport
