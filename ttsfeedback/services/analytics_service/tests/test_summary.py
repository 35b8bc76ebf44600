"""Tests for the plain-text report summary."""
from datetime import datetime, timezone

from ttsfeedback.shared.models import Category, Observation
from ttsfeedback.services.analytics_service.aggregator import (
    AnalysisWindow,
    RankedEntry,
    aggregate,
)
from ttsfeedback.services.analytics_service.summary import (
    UNKNOWN_REPORTER,
    build_summary,
    format_percent,
    format_ranking,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def _obs(obs_id, day, category=Category.TEXT, session_id="s1",
         course="Lesson 1", description="too much praise"):
    return Observation(
        id=obs_id,
        session_id=session_id,
        course_name=course,
        category=category,
        tags=("praise density",) if category == Category.TEXT else ("pause",),
        issue_description=description,
        feeling_tags=("flat",),
        created_at=datetime(2024, 6, day, 10, 0, tzinfo=timezone.utc),
    )


class TestFormatting:
    """Tests for formatting helpers."""

    def test_format_percent(self):
        assert format_percent(2 / 3) == "66.7%"
        assert format_percent(0) == "0.0%"
        assert format_percent(1) == "100.0%"

    def test_format_ranking(self):
        entries = [RankedEntry("pause", 3), RankedEntry("stress", 1)]

        assert format_ranking(entries) == "1. pause (3); 2. stress (1)"

    def test_format_empty_ranking(self):
        assert format_ranking([]) == "none"


class TestBuildSummary:
    """Tests for build_summary."""

    def test_empty_report(self):
        report = aggregate([], AnalysisWindow.LAST_7_DAYS, NOW)

        assert build_summary(report).split("\n") == [
            "[TTS Issue Report] Last 7 days",
            "- 0 issues recorded, no data.",
            "- Trend: no prior-period data.",
            "- Top tags: none.",
            "- Top courses: none.",
            "- Feeling distribution: none.",
            "- Samples: none.",
        ]

    def test_populated_report(self):
        log = [
            _obs("a", 14, course="Lesson 2", description="flat reading"),
            _obs("b", 14, Category.TTS, session_id="s2", description="long pause"),
            _obs("c", 10, description="awkward phrasing"),
        ]
        report = aggregate(log, AnalysisWindow.LAST_7_DAYS, NOW)

        lines = build_summary(report, {"s1": "Alice", "s2": "Bob"}).split("\n")

        assert lines[0] == "[TTS Issue Report] Last 7 days"
        assert lines[1] == "- 3 issues recorded, text 66.7%, tts 33.3%."
        assert lines[2] == "- Trend: no prior-period data."
        assert lines[3] == "- Top tags: 1. praise density (2); 2. pause (1)."
        assert lines[4] == "- Top courses: 1. Lesson 1 (2); 2. Lesson 2 (1)."
        assert lines[5] == "- Feeling distribution: 1. flat (3)."
        assert lines[6] == (
            "- Samples: 1) [Lesson 2] flat reading (Alice); "
            "2) [Lesson 1] long pause (Bob); "
            "3) [Lesson 1] awkward phrasing (Alice)."
        )

    def test_samples_limited_to_three(self):
        log = [_obs(f"o{i}", 14, description=f"issue {i}") for i in range(5)]
        report = aggregate(log, AnalysisWindow.LAST_7_DAYS, NOW)

        samples = build_summary(report, {"s1": "Alice"}).split("\n")[6]

        assert "3) [Lesson 1] issue 2" in samples
        assert "issue 3" not in samples

    def test_unknown_reporter(self):
        report = aggregate([_obs("a", 14)], AnalysisWindow.LAST_7_DAYS, NOW)

        summary = build_summary(report)

        assert f"({UNKNOWN_REPORTER})" in summary

    def test_comparison_up(self):
        log = [_obs("c1", 14), _obs("c2", 13), _obs("c3", 12), _obs("p1", 5), _obs("p2", 4)]
        report = aggregate(log, AnalysisWindow.LAST_7_DAYS, NOW)

        lines = build_summary(report).split("\n")

        assert lines[2] == "- Trend: up 50.0% vs previous period (2 issues)."

    def test_comparison_down(self):
        log = [_obs("c1", 14)] + [_obs(f"p{day}", day) for day in (2, 3, 4, 5)]
        report = aggregate(log, AnalysisWindow.LAST_7_DAYS, NOW)

        lines = build_summary(report).split("\n")

        assert lines[2] == "- Trend: down 75.0% vs previous period (4 issues)."

    def test_window_labels(self):
        assert build_summary(aggregate([], AnalysisWindow.LAST_30_DAYS, NOW)).startswith(
            "[TTS Issue Report] Last 30 days"
        )
        assert build_summary(aggregate([], AnalysisWindow.ALL, NOW)).startswith(
            "[TTS Issue Report] All data"
        )
