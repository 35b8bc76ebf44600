"""Submission checks for profiles and observation drafts.

Runs at the service boundary, before anything reaches the classifier
or storage. Each failure names the offending field.
"""
from dataclasses import replace
from typing import Any, List, Mapping

from ttsfeedback.shared.models import FEELING_OTHER, ObservationDraft, SessionInput


class ValidationError(ValueError):
    """Submitted data is incomplete or inconsistent."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


def text_field(data: Mapping[str, Any], name: str) -> str:
    """Read an optional string field; missing or null reads as empty."""
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(name, f"{name} must be a string")
    return value


def list_field(data: Mapping[str, Any], name: str) -> List[str]:
    """Read an optional list-of-strings field; missing or null reads as empty."""
    value = data.get(name)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(name, f"{name} must be a list of strings")
    return list(value)


def parse_session_input(data: Mapping[str, Any]) -> SessionInput:
    """Build profile input from a request body, checking field types."""
    return SessionInput(
        reporter_name=text_field(data, "reporter_name"),
        tester_device=text_field(data, "tester_device"),
        tester_os=text_field(data, "tester_os"),
    )


def parse_draft(data: Mapping[str, Any]) -> ObservationDraft:
    """Build a draft from a request body, checking field types.

    Raises:
        ValidationError: If a field has the wrong JSON type
    """
    return ObservationDraft(
        course_name=text_field(data, "course_name"),
        tags=list_field(data, "tags"),
        issue_description=text_field(data, "issue_description"),
        feeling_tags=list_field(data, "feeling_tags"),
        feeling_other=text_field(data, "feeling_other"),
    )


def validate_session_input(session_input: SessionInput) -> None:
    """Reporter and device are required; OS is optional."""
    if not session_input.reporter_name.strip():
        raise ValidationError("reporter_name", "Reporter name is required")
    if not session_input.tester_device.strip():
        raise ValidationError("tester_device", "Tester device is required")


def normalize_draft(draft: ObservationDraft) -> ObservationDraft:
    """Trim text fields; drop feeling_other unless "other" was chosen."""
    keep_other = FEELING_OTHER in draft.feeling_tags
    return replace(
        draft,
        course_name=draft.course_name.strip(),
        issue_description=draft.issue_description.strip(),
        tags=list(draft.tags),
        feeling_tags=list(draft.feeling_tags),
        feeling_other=draft.feeling_other.strip() if keep_other else "",
    )


def validate_draft(draft: ObservationDraft) -> None:
    """Check a draft is complete enough to store.

    Raises:
        ValidationError: On the first missing or inconsistent field
    """
    if not draft.course_name.strip():
        raise ValidationError("course_name", "Course name is required")
    if not draft.issue_description.strip():
        raise ValidationError("issue_description", "Issue description is required")
    if not draft.tags:
        raise ValidationError("tags", "Select at least one tag (text or TTS)")
    if not draft.feeling_tags:
        raise ValidationError("feeling_tags", "Select at least one feeling")
    if FEELING_OTHER in draft.feeling_tags and not draft.feeling_other.strip():
        raise ValidationError(
            "feeling_other", 'Describe the feeling when "other" is selected'
        )
