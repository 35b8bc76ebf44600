"""Shared domain models for the TTS feedback platform."""
from .observation import (
    Category,
    CATEGORY_LABELS,
    FEELING_OTHER,
    FEELING_OPTIONS,
    Observation,
    ObservationDraft,
    Session,
    SessionInput,
    build_reporter_lookup,
    parse_timestamp,
)

__all__ = [
    "Category",
    "CATEGORY_LABELS",
    "FEELING_OTHER",
    "FEELING_OPTIONS",
    "Observation",
    "ObservationDraft",
    "Session",
    "SessionInput",
    "build_reporter_lookup",
    "parse_timestamp",
]
