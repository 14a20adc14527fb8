"""Scanner for article tags.

Grammar (keyword is case-sensitive):
- `[CHART:` then any characters except `]` then `]`
- `[Imagem:` then optional whitespace, any characters except `]`, then `]`

An opener with no closing bracket, or a tag whose trimmed payload is empty,
is reported as malformed and left untouched.
"""

from __future__ import annotations

import re

from figtag.tags.models import (
    MalformedTag,
    PendingChartTag,
    PendingImageTag,
    ScanResult,
    TagKind,
)

CHART_TAG_RE = re.compile(r"\[CHART:([^\]]*)\]")
IMAGE_TAG_RE = re.compile(r"\[Imagem:\s*([^\]]*)\]")
CHART_OPENER = "[CHART:"
IMAGE_OPENER = "[Imagem:"
_FRAGMENT_LIMIT = 80


def scan_chart_tags(content: str) -> ScanResult:
    result = ScanResult()
    for match in CHART_TAG_RE.finditer(content):
        chart_id = match.group(1).strip()
        if not chart_id:
            result.malformed.append(_empty_payload("chart", match))
            continue
        result.tags.append(
            PendingChartTag(
                token=match.group(0),
                chart_id=chart_id,
                start=match.start(),
                end=match.end(),
            )
        )
    result.malformed.extend(_unterminated(content, CHART_OPENER, "chart", CHART_TAG_RE))
    result.malformed.sort(key=lambda item: item.start)
    return result


def scan_image_tags(content: str) -> ScanResult:
    result = ScanResult()
    for match in IMAGE_TAG_RE.finditer(content):
        requested_name = match.group(1).strip()
        if not requested_name:
            result.malformed.append(_empty_payload("image", match))
            continue
        result.tags.append(
            PendingImageTag(
                token=match.group(0),
                requested_name=requested_name,
                start=match.start(),
                end=match.end(),
            )
        )
    result.malformed.extend(_unterminated(content, IMAGE_OPENER, "image", IMAGE_TAG_RE))
    result.malformed.sort(key=lambda item: item.start)
    return result


def _empty_payload(kind: TagKind, match: re.Match[str]) -> MalformedTag:
    return MalformedTag(
        kind=kind,
        reason="empty_payload",
        text=match.group(0),
        start=match.start(),
        end=match.end(),
    )


def _unterminated(
    content: str, opener: str, kind: TagKind, pattern: re.Pattern[str]
) -> list[MalformedTag]:
    covered = [(match.start(), match.end()) for match in pattern.finditer(content)]
    issues: list[MalformedTag] = []

    position = content.find(opener)
    while position != -1:
        if not any(start <= position < end for start, end in covered):
            line_end = content.find("\n", position)
            end = len(content) if line_end == -1 else line_end
            end = min(end, position + _FRAGMENT_LIMIT)
            issues.append(
                MalformedTag(
                    kind=kind,
                    reason="unterminated",
                    text=content[position:end],
                    start=position,
                    end=end,
                )
            )
        position = content.find(opener, position + len(opener))

    return issues
