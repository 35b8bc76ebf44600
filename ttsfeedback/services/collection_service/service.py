"""Collection workflow: profiles, submissions and exports.

Ties together validation, the issue classifier and the storage backend.
The category of an observation is decided here, once, at submission.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ttsfeedback.shared.database import NotFoundError
from ttsfeedback.shared.models import (
    Observation,
    ObservationDraft,
    Session,
    SessionInput,
    build_reporter_lookup,
)
from ttsfeedback.shared.storage import ObservationStore, StorageConfig
from ttsfeedback.services.classifier_service import (
    ClassificationResult,
    IssueClassifier,
    get_classifier,
)
from .export import export_csv
from .filters import ObservationFilter, filter_observations
from .validation import (
    ValidationError,
    normalize_draft,
    validate_draft,
    validate_session_input,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_name(value: str) -> str:
    return value.strip().lower()


class CollectionService:
    """Records tester profiles and classified observations."""

    def __init__(
        self,
        store: ObservationStore,
        classifier: Optional[IssueClassifier] = None,
        config: Optional[StorageConfig] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize service with dependencies.

        Args:
            store: Storage backend
            classifier: Issue classifier (production policy if None)
            config: Listing limits
            clock: Source of creation timestamps (injected for testing)
        """
        self.store = store
        self.classifier = classifier or get_classifier()
        self.config = config or StorageConfig()
        self.clock = clock

        logger.info(
            "COLLECTION_SERVICE_INITIALIZED",
            extra={"backend": store.backend_name}
        )

    def list_sessions(self) -> List[Session]:
        return self.store.list_sessions(limit=self.config.session_limit)

    def list_observations(self) -> List[Observation]:
        return self.store.list_observations(limit=self.config.observation_limit)

    def profiles_for_reporter(self, reporter_name: str) -> List[Session]:
        """Profiles whose reporter matches, ignoring case and padding."""
        wanted = normalize_name(reporter_name)
        if not wanted:
            return []
        return [
            session for session in self.list_sessions()
            if normalize_name(session.reporter_name) == wanted
        ]

    def create_session(self, session_input: SessionInput) -> Session:
        """Validate and store a new tester/device profile."""
        validate_session_input(session_input)

        session = Session(
            id=str(uuid.uuid4()),
            reporter_name=session_input.reporter_name.strip(),
            tester_device=session_input.tester_device.strip(),
            tester_os=session_input.tester_os.strip() or None,
            created_at=self.clock(),
        )
        stored = self.store.insert_session(session)

        logger.info(
            "SESSION_CREATED",
            extra={"session_id": stored.id, "backend": self.store.backend_name}
        )
        return stored

    def update_session(
        self,
        session_id: str,
        tester_device: str,
        tester_os: str = "",
    ) -> Session:
        """Change the device details of a profile."""
        if not tester_device.strip():
            raise ValidationError("tester_device", "Tester device is required")

        updated = self.store.update_session(
            session_id,
            {
                "tester_device": tester_device.strip(),
                "tester_os": tester_os.strip() or None,
            },
        )

        logger.info("SESSION_UPDATED", extra={"session_id": session_id})
        return updated

    def delete_session(self, session_id: str) -> int:
        """Delete a profile and its observations.

        Returns:
            Number of observations removed with the profile

        Raises:
            NotFoundError: If the profile does not exist
        """
        related = sum(
            1 for item in self.list_observations() if item.session_id == session_id
        )
        if not self.store.delete_session(session_id):
            raise NotFoundError(f"sessions {session_id} not found")

        logger.warning(
            "SESSION_DELETED",
            extra={"session_id": session_id, "observations_removed": related}
        )
        return related

    def preview(self, draft: ObservationDraft) -> ClassificationResult:
        """Classify a draft without storing it."""
        return self.classifier.classify(draft)

    def submit_observation(
        self,
        session_id: str,
        draft: ObservationDraft,
    ) -> Tuple[Observation, ClassificationResult]:
        """Validate, classify and store a new observation.

        Args:
            session_id: Owning profile
            draft: Tester input

        Returns:
            Stored observation and the classification behind its category

        Raises:
            ValidationError: If the draft is incomplete
            NotFoundError: If the profile does not exist
        """
        if not session_id:
            raise ValidationError("session_id", "Select or create a profile first")
        draft = normalize_draft(draft)
        validate_draft(draft)
        if self.store.get_session(session_id) is None:
            raise NotFoundError(f"sessions {session_id} not found")

        classification = self.classifier.classify(draft)
        observation = Observation(
            id=str(uuid.uuid4()),
            session_id=session_id,
            course_name=draft.course_name,
            category=classification.category,
            tags=tuple(draft.tags),
            issue_description=draft.issue_description,
            feeling_tags=tuple(draft.feeling_tags),
            feeling_other=draft.feeling_other or None,
            created_at=self.clock(),
        )
        stored = self.store.insert_observation(observation)

        logger.info(
            "OBSERVATION_SUBMITTED",
            extra={
                "observation_id": stored.id,
                "session_id": session_id,
                "category": stored.category.value,
                "tag_count": len(stored.tags),
            }
        )
        return stored, classification

    def filtered_observations(
        self,
        criteria: ObservationFilter,
    ) -> Tuple[List[Observation], List[Session]]:
        """Observations matching the filter, plus the profiles they reference."""
        sessions = self.list_sessions()
        matched = filter_observations(
            self.list_observations(), criteria, build_reporter_lookup(sessions)
        )
        return matched, sessions

    def export(self, criteria: ObservationFilter) -> str:
        """CSV of the filtered observation list."""
        observations, sessions = self.filtered_observations(criteria)

        logger.info(
            "OBSERVATIONS_EXPORTED",
            extra={"row_count": len(observations)}
        )
        return export_csv(observations, sessions)
