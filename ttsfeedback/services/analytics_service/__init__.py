"""Analytics Service: windowed reporting over the observation log.

This service provides:
- Text/TTS counts and ratios for the last 7 days, 30 days or all data
- Top-5 rankings of tags, courses and feelings
- Daily trend series and period-over-period comparison
- A plain-text summary for weekly updates

Aggregation is a pure function of the log, the window and an injected
"now"; nothing in it reads the wall clock.

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check
- GET /report - Aggregated statistics
- GET /summary - Text summary
"""

from .aggregator import (
    AnalysisWindow,
    PeriodComparison,
    RankedEntry,
    Report,
    TrendPoint,
    aggregate,
    compute_bounds,
    rank_top,
    TOP_K,
    ALL_WINDOW_TREND_DAYS,
)
from .summary import build_summary, format_percent, format_ranking
from .handler import (
    AnalyticsHandler,
    AnalyticsConfig,
    app,
)

__all__ = [
    "AnalysisWindow",
    "PeriodComparison",
    "RankedEntry",
    "Report",
    "TrendPoint",
    "aggregate",
    "compute_bounds",
    "rank_top",
    "TOP_K",
    "ALL_WINDOW_TREND_DAYS",
    "build_summary",
    "format_percent",
    "format_ranking",
    "AnalyticsHandler",
    "AnalyticsConfig",
    "app",
]
