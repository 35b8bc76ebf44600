"""Observation and tester profile domain models.

Observations are append-only: the category is assigned once, when the
record is created, and never recomputed afterwards.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class Category(Enum):
    """Two-way classification of a reported issue."""
    TEXT = "text"   # Script wording problem (praise density, phrasing, ...)
    TTS = "tts"     # Speech synthesis problem (pronunciation, pauses, ...)


CATEGORY_LABELS: Dict[Category, str] = {
    Category.TEXT: "Text issue",
    Category.TTS: "TTS issue",
}

# Sentinel feeling that requires a free-text explanation
FEELING_OTHER = "other"

FEELING_OPTIONS: Tuple[str, ...] = (
    "I can feel surprise, curiosity, sadness and varying degrees of encouragement",
    "I occasionally feel emotion",
    "Overall flat, no particular feeling",
    FEELING_OTHER,
)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC. A trailing ``Z`` is accepted.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Session:
    """A tester/device profile that owns observations."""
    id: str
    reporter_name: str
    tester_device: str
    tester_os: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "reporter_name": self.reporter_name,
            "tester_device": self.tester_device,
            "tester_os": self.tester_os,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            id=str(data["id"]),
            reporter_name=data.get("reporter_name", ""),
            tester_device=data.get("tester_device") or "",
            tester_os=data.get("tester_os") or None,
            created_at=parse_timestamp(data["created_at"]),
        )


def build_reporter_lookup(sessions: Iterable[Session]) -> Dict[str, str]:
    """Map session id to reporter display name."""
    return {session.id: session.reporter_name for session in sessions}


@dataclass
class SessionInput:
    """Form input for creating or editing a profile."""
    reporter_name: str = ""
    tester_device: str = ""
    tester_os: str = ""


@dataclass
class ObservationDraft:
    """Transient, editable observation before submission.

    Any draft is classifiable, including the empty one.
    """
    course_name: str = ""
    tags: List[str] = field(default_factory=list)
    issue_description: str = ""
    feeling_tags: List[str] = field(default_factory=list)
    feeling_other: str = ""


@dataclass(frozen=True)
class Observation:
    """One recorded issue, permanently tagged with its category."""
    id: str
    session_id: str
    course_name: str
    category: Category
    tags: Tuple[str, ...]
    issue_description: str
    feeling_tags: Tuple[str, ...]
    created_at: datetime
    feeling_other: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.category, Category):
            raise ValueError(f"Category must be a Category, got {self.category!r}")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "course_name": self.course_name,
            "category": self.category.value,
            "tags": list(self.tags),
            "issue_description": self.issue_description,
            "feeling_tags": list(self.feeling_tags),
            "feeling_other": self.feeling_other,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Observation":
        return cls(
            id=str(data["id"]),
            session_id=str(data["session_id"]),
            course_name=data.get("course_name", ""),
            category=Category(data["category"]),
            tags=tuple(data.get("tags") or ()),
            issue_description=data.get("issue_description", ""),
            feeling_tags=tuple(data.get("feeling_tags") or ()),
            feeling_other=data.get("feeling_other") or None,
            created_at=parse_timestamp(data["created_at"]),
        )
