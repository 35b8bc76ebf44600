"""Windowed aggregation over the observation log.

Pure function of (observations, window, now). The reporting clock is
passed in, never read here. Calendar-day arithmetic happens in the
timezone of ``now``; observation timestamps are converted to it first.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ttsfeedback.shared.models import Category, Observation

logger = logging.getLogger(__name__)

TOP_K = 5
ALL_WINDOW_TREND_DAYS = 14

# Smallest datetime step; previous period ends one tick before the current one
TICK = timedelta(microseconds=1)


class AnalysisWindow(Enum):
    """Reporting time range."""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        """Window length in days, or None for the unbounded window."""
        return {"7d": 7, "30d": 30}.get(self.value)


@dataclass(frozen=True)
class RankedEntry:
    """One row of a top-K ranking."""
    key: str
    count: int


@dataclass(frozen=True)
class TrendPoint:
    """Observation count for one calendar day."""
    day: str    # YYYY-MM-DD
    count: int


@dataclass(frozen=True)
class PeriodComparison:
    """Current vs previous period totals."""
    current_total: int
    previous_total: int
    delta_percent: float

    @property
    def direction(self) -> str:
        return "up" if self.delta_percent >= 0 else "down"

    @property
    def magnitude(self) -> str:
        """Absolute change, one decimal place."""
        return f"{abs(self.delta_percent):.1f}"


@dataclass
class Report:
    """Aggregated statistics for one reporting window."""
    window: AnalysisWindow
    now: datetime
    current_start: Optional[datetime]
    current_end: datetime
    previous_start: Optional[datetime]
    previous_end: Optional[datetime]
    current_items: List[Observation]
    previous_items: List[Observation]
    total_count: int
    text_count: int
    tts_count: int
    top_tags: List[RankedEntry] = field(default_factory=list)
    top_courses: List[RankedEntry] = field(default_factory=list)
    top_feelings: List[RankedEntry] = field(default_factory=list)
    daily_trend: List[TrendPoint] = field(default_factory=list)
    comparison: Optional[PeriodComparison] = None

    @property
    def window_days(self) -> Optional[int]:
        return self.window.days

    @property
    def text_ratio(self) -> Optional[float]:
        """Share of text issues, None when there is no data."""
        if self.total_count == 0:
            return None
        return self.text_count / self.total_count

    @property
    def tts_ratio(self) -> Optional[float]:
        """Share of TTS issues, None when there is no data."""
        if self.total_count == 0:
            return None
        return self.tts_count / self.total_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "window": self.window.value,
            "window_days": self.window_days,
            "now": self.now.isoformat(),
            "current_start": _iso(self.current_start),
            "current_end": self.current_end.isoformat(),
            "previous_start": _iso(self.previous_start),
            "previous_end": _iso(self.previous_end),
            "total_count": self.total_count,
            "text_count": self.text_count,
            "tts_count": self.tts_count,
            "text_ratio": self.text_ratio,
            "tts_ratio": self.tts_ratio,
            "previous_count": len(self.previous_items),
            "top_tags": [{"key": e.key, "count": e.count} for e in self.top_tags],
            "top_courses": [{"key": e.key, "count": e.count} for e in self.top_courses],
            "top_feelings": [{"key": e.key, "count": e.count} for e in self.top_feelings],
            "daily_trend": [{"day": p.day, "count": p.count} for p in self.daily_trend],
            "comparison": (
                {
                    "available": True,
                    "previous_total": self.comparison.previous_total,
                    "delta_percent": round(self.comparison.delta_percent, 1),
                    "direction": self.comparison.direction,
                }
                if self.comparison else {"available": False}
            ),
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def start_of_day(moment: datetime) -> datetime:
    """Midnight of the calendar day containing ``moment`` (same tzinfo)."""
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def compute_bounds(
    window: AnalysisWindow,
    now: datetime,
) -> Tuple[Optional[datetime], Optional[datetime], Optional[datetime]]:
    """Compute (current_start, previous_start, previous_end) for a window.

    The current period runs from ``current_start`` to ``now``. The previous
    period is the equal-length run of whole days just before it. All three
    are None for the unbounded window.
    """
    days = window.days
    if days is None:
        return None, None, None

    current_start = start_of_day(now) - timedelta(days=days - 1)
    previous_end = current_start - TICK
    previous_start = start_of_day(previous_end) - timedelta(days=days - 1)
    return current_start, previous_start, previous_end


def rank_top(values: Iterable[str], limit: int = TOP_K) -> List[RankedEntry]:
    """Count values and return the most frequent ones.

    Ties keep the order in which keys were first seen.
    """
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [RankedEntry(key=key, count=count) for key, count in ordered[:limit]]


def build_daily_trend(
    items: Sequence[Observation],
    today_start: datetime,
    trend_days: int,
) -> List[TrendPoint]:
    """Per-day counts over ``trend_days`` days ending on today's date."""
    tz = today_start.tzinfo
    first_day: date = today_start.date() - timedelta(days=trend_days - 1)
    buckets: Dict[str, int] = {
        (first_day + timedelta(days=offset)).isoformat(): 0
        for offset in range(trend_days)
    }
    for item in items:
        key = item.created_at.astimezone(tz).date().isoformat()
        if key in buckets:
            buckets[key] += 1
    return [TrendPoint(day=key, count=count) for key, count in buckets.items()]


def compare_periods(
    current_total: int,
    previous_items: Sequence[Observation],
    has_previous_period: bool,
) -> Optional[PeriodComparison]:
    """Period-over-period change, None when there is nothing to compare to."""
    previous_total = len(previous_items)
    if not has_previous_period or previous_total == 0:
        return None
    delta = (current_total - previous_total) / previous_total * 100
    return PeriodComparison(
        current_total=current_total,
        previous_total=previous_total,
        delta_percent=delta,
    )


def aggregate(
    observations: Sequence[Observation],
    window: AnalysisWindow,
    now: datetime,
) -> Report:
    """Aggregate the observation log for one reporting window.

    Args:
        observations: Full log, newest first as stored
        window: Reporting window
        now: Reporting instant (timezone-aware); defines "today"

    Returns:
        Report with counts, rankings, trend and comparison
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    current_start, previous_start, previous_end = compute_bounds(window, now)

    if current_start is None:
        current_items = list(observations)
        previous_items: List[Observation] = []
    else:
        current_items = [
            item for item in observations
            if current_start <= item.created_at <= now
        ]
        previous_items = [
            item for item in observations
            if previous_start <= item.created_at <= previous_end
        ]

    total_count = len(current_items)
    text_count = sum(1 for item in current_items if item.category == Category.TEXT)
    tts_count = sum(1 for item in current_items if item.category == Category.TTS)

    top_tags = rank_top(tag for item in current_items for tag in item.tags)
    top_courses = rank_top(item.course_name for item in current_items)
    top_feelings = rank_top(
        feeling for item in current_items for feeling in item.feeling_tags
    )

    today_start = start_of_day(now)
    trend_days = window.days or ALL_WINDOW_TREND_DAYS
    if window.days is None:
        trend_start = today_start - timedelta(days=trend_days - 1)
        trend_source = [item for item in current_items if item.created_at >= trend_start]
    else:
        trend_source = current_items
    daily_trend = build_daily_trend(trend_source, today_start, trend_days)

    comparison = compare_periods(
        total_count, previous_items, has_previous_period=current_start is not None
    )

    logger.info(
        "REPORT_AGGREGATED",
        extra={
            "window": window.value,
            "log_size": len(observations),
            "current_count": total_count,
            "previous_count": len(previous_items),
            "text_count": text_count,
            "tts_count": tts_count,
            "comparison_available": comparison is not None,
        }
    )

    return Report(
        window=window,
        now=now,
        current_start=current_start,
        current_end=now,
        previous_start=previous_start,
        previous_end=previous_end,
        current_items=current_items,
        previous_items=previous_items,
        total_count=total_count,
        text_count=text_count,
        tts_count=tts_count,
        top_tags=top_tags,
        top_courses=top_courses,
        top_feelings=top_feelings,
        daily_trend=daily_trend,
        comparison=comparison,
    )
