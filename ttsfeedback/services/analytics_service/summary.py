"""Human-readable report summary.

Renders a Report into the fixed plain-text template testers paste into
their weekly updates.
"""
import logging
from typing import List, Mapping, Optional, Sequence

from .aggregator import AnalysisWindow, RankedEntry, Report

logger = logging.getLogger(__name__)

SAMPLE_LIMIT = 3
UNKNOWN_REPORTER = "unknown"

WINDOW_LABELS = {
    AnalysisWindow.LAST_7_DAYS: "Last 7 days",
    AnalysisWindow.LAST_30_DAYS: "Last 30 days",
    AnalysisWindow.ALL: "All data",
}


def format_percent(value: float) -> str:
    """Format a 0-1 ratio as a percentage with one decimal."""
    return f"{value * 100:.1f}%"


def format_ranking(entries: Sequence[RankedEntry]) -> str:
    """Numbered, count-annotated list, or "none"."""
    if not entries:
        return "none"
    return "; ".join(
        f"{idx}. {entry.key} ({entry.count})"
        for idx, entry in enumerate(entries, start=1)
    )


def _ratio_text(report: Report) -> str:
    if report.total_count == 0:
        return "no data"
    return (
        f"text {format_percent(report.text_ratio)}, "
        f"tts {format_percent(report.tts_ratio)}"
    )


def _comparison_text(report: Report) -> str:
    comparison = report.comparison
    if comparison is None:
        return "no prior-period data"
    return (
        f"{comparison.direction} {comparison.magnitude}% vs previous period "
        f"({comparison.previous_total} issues)"
    )


def _sample_lines(
    report: Report,
    reporter_lookup: Optional[Mapping[str, str]],
) -> List[str]:
    lookup = reporter_lookup or {}
    lines = []
    for idx, item in enumerate(report.current_items[:SAMPLE_LIMIT], start=1):
        reporter = lookup.get(item.session_id) or UNKNOWN_REPORTER
        lines.append(f"{idx}) [{item.course_name}] {item.issue_description} ({reporter})")
    return lines


def build_summary(
    report: Report,
    reporter_lookup: Optional[Mapping[str, str]] = None,
) -> str:
    """Render the report as the plain-text summary.

    Samples are the first items of the current window in stored order
    (newest first); they are not re-sorted here.

    Args:
        report: Aggregated report
        reporter_lookup: session_id -> reporter display name

    Returns:
        Multi-line summary text
    """
    samples = _sample_lines(report, reporter_lookup)

    lines = [
        f"[TTS Issue Report] {WINDOW_LABELS[report.window]}",
        f"- {report.total_count} issues recorded, {_ratio_text(report)}.",
        f"- Trend: {_comparison_text(report)}.",
        f"- Top tags: {format_ranking(report.top_tags)}.",
        f"- Top courses: {format_ranking(report.top_courses)}.",
        f"- Feeling distribution: {format_ranking(report.top_feelings)}.",
        f"- Samples: {'; '.join(samples) if samples else 'none'}.",
    ]

    logger.debug(
        "SUMMARY_RENDERED",
        extra={"window": report.window.value, "sample_count": len(samples)}
    )

    return "\n".join(lines)
