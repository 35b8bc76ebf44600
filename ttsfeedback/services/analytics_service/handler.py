"""Analytics Service HTTP handler - windowed reports and summaries.

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check
- GET /report - Aggregated statistics for a window
- GET /summary - Plain-text summary for a window
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from flask import Flask, jsonify, request

from ttsfeedback.shared.models import build_reporter_lookup
from ttsfeedback.shared.storage import ObservationStore, StorageConfig, create_store
from .aggregator import AnalysisWindow, Report, aggregate
from .summary import build_summary

logger = logging.getLogger(__name__)

app = Flask(__name__)


@dataclass(frozen=True)
class AnalyticsConfig:
    """Configuration for analytics service."""
    report_timezone: str = "UTC"
    default_window: str = AnalysisWindow.LAST_7_DAYS.value
    session_limit: int = 200
    observation_limit: int = 5000

    @classmethod
    def from_env(cls) -> "AnalyticsConfig":
        """Create config from environment variables.

        Environment variables:
            REPORT_TIMEZONE: IANA zone that defines calendar days (default UTC)
            DEFAULT_WINDOW: 7d, 30d or all (default 7d)
        """
        storage = StorageConfig.from_env()
        return cls(
            report_timezone=os.getenv("REPORT_TIMEZONE", "UTC"),
            default_window=os.getenv("DEFAULT_WINDOW", AnalysisWindow.LAST_7_DAYS.value),
            session_limit=storage.session_limit,
            observation_limit=storage.observation_limit,
        )


class AnalyticsHandler:
    """Handler for report and summary endpoints."""

    def __init__(
        self,
        store: ObservationStore,
        config: Optional[AnalyticsConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize handler with dependencies.

        Args:
            store: Storage backend holding the observation log
            config: Analytics configuration
            clock: Reporting clock (injected for testing)
        """
        self.store = store
        self.config = config or AnalyticsConfig()
        self.tz = ZoneInfo(self.config.report_timezone)
        self.clock = clock or (lambda: datetime.now(self.tz))

        logger.info(
            "ANALYTICS_HANDLER_INITIALIZED",
            extra={
                "backend": store.backend_name,
                "report_timezone": self.config.report_timezone,
            }
        )

    def get_report(self, window: AnalysisWindow) -> Report:
        """Aggregate the stored log for a window as of the clock's now."""
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        observations = self.store.list_observations(limit=self.config.observation_limit)
        return aggregate(observations, window, now)

    def get_summary(self, window: AnalysisWindow) -> Dict[str, Any]:
        """Report plus its rendered text summary."""
        report = self.get_report(window)
        sessions = self.store.list_sessions(limit=self.config.session_limit)
        summary = build_summary(report, build_reporter_lookup(sessions))

        logger.info(
            "SUMMARY_GENERATED",
            extra={"window": window.value, "total_count": report.total_count}
        )

        return {
            "window": window.value,
            "total_count": report.total_count,
            "summary": summary,
        }


# Global handler instance
_handler: Optional[AnalyticsHandler] = None


def get_handler() -> AnalyticsHandler:
    """Get or create the global handler instance."""
    global _handler
    if _handler is None:
        _handler = AnalyticsHandler(
            store=create_store(StorageConfig.from_env()),
            config=AnalyticsConfig.from_env(),
        )
    return _handler


def set_handler(handler: AnalyticsHandler) -> None:
    """Set the global handler (for testing)."""
    global _handler
    _handler = handler


def _window_from_request(handler: AnalyticsHandler) -> Optional[AnalysisWindow]:
    value = request.args.get("window", handler.config.default_window)
    try:
        return AnalysisWindow(value)
    except ValueError:
        return None


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "service": "analytics-service"})


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check endpoint."""
    storage = get_handler().store.health_check()
    if not storage.get("healthy"):
        return jsonify({"status": "not_ready", "storage": storage}), 503
    return jsonify({"status": "ready", "service": "analytics-service"})


@app.route("/report", methods=["GET"])
def report():
    """Aggregated statistics.

    Query params:
        window: Optional - 7d, 30d or all (default from config)
    """
    handler = get_handler()
    window = _window_from_request(handler)
    if window is None:
        return jsonify({"error": "window must be one of: 7d, 30d, all"}), 400

    try:
        result = handler.get_report(window)
    except Exception as e:
        logger.error("REPORT_FAILED", extra={"window": window.value, "error": str(e)})
        return jsonify({"error": "Failed to build report"}), 500

    return jsonify(result.to_dict())


@app.route("/summary", methods=["GET"])
def summary():
    """Plain-text summary.

    Query params:
        window: Optional - 7d, 30d or all (default from config)
    """
    handler = get_handler()
    window = _window_from_request(handler)
    if window is None:
        return jsonify({"error": "window must be one of: 7d, 30d, all"}), 400

    try:
        result = handler.get_summary(window)
    except Exception as e:
        logger.error("SUMMARY_FAILED", extra={"window": window.value, "error": str(e)})
        return jsonify({"error": "Failed to build summary"}), 500

    return jsonify(result)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8081"))
    app.run(host="0.0.0.0", port=port)
