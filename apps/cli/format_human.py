"""Human-readable resolution summary rendering for CLI output."""

from __future__ import annotations

from collections import Counter

from figtag.tags.models import ResolutionReport

_TOP_ITEMS = 5


def render_resolution_summary(report: ResolutionReport) -> str:
    """Render a one-screen summary of a resolution report."""

    lines: list[str] = ["resolution_summary:"]
    if report.cancelled:
        lines.append("result=CANCELLED")
        return "\n".join(lines)

    lines.append(
        f"resolved={report.resolved_count} "
        f"unresolved={len(report.unresolved_requests)} "
        f"rejected={len(report.rejected_charts)}"
    )

    strategy_counter: Counter[str] = Counter(
        entry.strategy
        for entry in report.entries
        if entry.status == "resolved" and entry.strategy is not None
    )
    lines.append(f"strategies: {_top_counts(strategy_counter)}")

    if report.unresolved_requests:
        shown = report.unresolved_requests[:_TOP_ITEMS]
        lines.append("unresolved: " + ", ".join(shown))
    else:
        lines.append("unresolved: none")

    if report.rejected_charts:
        rejected = ", ".join(f"{item.id}={item.reason}" for item in report.rejected_charts)
        lines.append(f"rejected: {rejected}")
    else:
        lines.append("rejected: none")

    lines.append("suggestion: " + _build_suggestion(report))
    return "\n".join(lines)


def _top_counts(counter: Counter[str]) -> str:
    if not counter:
        return "none"
    top_items = sorted(counter.items(), key=lambda item: (-item[1], item[0]))[:_TOP_ITEMS]
    return ", ".join(f"{code}={count}" for code, count in top_items)


def _build_suggestion(report: ResolutionReport) -> str:
    reasons = {entry.reason for entry in report.entries if entry.status == "unresolved"}
    if "listing_unavailable" in reasons:
        return "file listing was unavailable; check --uploads-dir and rerun."
    if report.rejected_charts:
        return "fix rejected chart descriptors; see `figtag validate-charts`."
    if report.unresolved_requests:
        return "upload the missing images or correct the tag names."
    return "none"
