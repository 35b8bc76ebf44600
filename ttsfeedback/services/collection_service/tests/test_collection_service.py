"""Tests for CollectionService.

Uses the local file backend on a temporary path with a fixed clock.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from ttsfeedback.shared.database import NotFoundError
from ttsfeedback.shared.models import Category, ObservationDraft, SessionInput
from ttsfeedback.shared.storage import LocalFileStore, StorageConfig
from ttsfeedback.services.classifier_service import REASON_NO_SIGNAL
from ttsfeedback.services.collection_service.filters import ObservationFilter
from ttsfeedback.services.collection_service.service import CollectionService
from ttsfeedback.services.collection_service.validation import ValidationError

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return LocalFileStore(str(tmp_path / "store.json"))


@pytest.fixture
def service(store):
    """Service with a fixed clock."""
    return CollectionService(store=store, clock=lambda: NOW)


@pytest.fixture
def session(service):
    return service.create_session(SessionInput(" Alice ", " iPad ", ""))


def _draft(**overrides):
    values = dict(
        course_name="Lesson 1",
        tags=["mispronunciation"],
        issue_description="the word was read wrong",
        feeling_tags=["Overall flat, no particular feeling"],
    )
    values.update(overrides)
    return ObservationDraft(**values)


class TestProfiles:
    """Tests for profile management."""

    def test_create_session_trims_and_stores(self, service, session):
        assert session.reporter_name == "Alice"
        assert session.tester_device == "iPad"
        assert session.tester_os is None
        assert session.created_at == NOW
        assert service.list_sessions() == [session]

    def test_create_session_validates(self, service):
        with pytest.raises(ValidationError):
            service.create_session(SessionInput("", "iPad"))

    def test_profiles_for_reporter_ignores_case(self, service, session):
        service.create_session(SessionInput("Bob", "Pixel"))

        assert service.profiles_for_reporter("  alice ") == [session]
        assert service.profiles_for_reporter("") == []

    def test_update_session(self, service, session):
        updated = service.update_session(session.id, " Pixel 8 ", "Android 14")

        assert updated.tester_device == "Pixel 8"
        assert updated.tester_os == "Android 14"
        assert updated.reporter_name == "Alice"

    def test_update_session_requires_device(self, service, session):
        with pytest.raises(ValidationError):
            service.update_session(session.id, "  ")

    def test_update_missing_session(self, service):
        with pytest.raises(NotFoundError):
            service.update_session("missing", "iPad")

    def test_delete_session_cascades(self, service, session):
        service.submit_observation(session.id, _draft())
        service.submit_observation(session.id, _draft())

        removed = service.delete_session(session.id)

        assert removed == 2
        assert service.list_sessions() == []
        assert service.list_observations() == []

    def test_delete_missing_session(self, service):
        with pytest.raises(NotFoundError):
            service.delete_session("missing")


class TestSubmitObservation:
    """Tests for observation submission."""

    def test_assigns_category_once(self, service, session):
        observation, classification = service.submit_observation(session.id, _draft())

        assert observation.category == Category.TTS
        assert classification.category == observation.category
        assert observation.session_id == session.id
        assert observation.created_at == NOW
        assert service.list_observations() == [observation]

    def test_text_issue(self, service, session):
        observation, _ = service.submit_observation(
            session.id,
            _draft(tags=["praise density"], issue_description="too much praise"),
        )

        assert observation.category == Category.TEXT

    def test_requires_session(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.submit_observation("", _draft())

        assert exc_info.value.field == "session_id"

    def test_unknown_session(self, service):
        with pytest.raises(NotFoundError):
            service.submit_observation("missing", _draft())

    def test_invalid_draft_not_stored(self, service, session):
        with pytest.raises(ValidationError):
            service.submit_observation(session.id, _draft(tags=[]))

        assert service.list_observations() == []

    def test_feeling_other_dropped_unless_selected(self, service, session):
        observation, _ = service.submit_observation(
            session.id, _draft(feeling_other="stale text")
        )

        assert observation.feeling_other is None

    def test_uses_injected_classifier(self, store, session):
        classifier = MagicMock()
        classifier.classify.return_value.category = Category.TEXT
        service = CollectionService(store=store, classifier=classifier, clock=lambda: NOW)

        observation, _ = service.submit_observation(session.id, _draft())

        assert observation.category == Category.TEXT
        classifier.classify.assert_called_once()


class TestPreview:
    def test_preview_does_not_store(self, service):
        result = service.preview(ObservationDraft())

        assert result.category == Category.TTS
        assert result.reason == REASON_NO_SIGNAL
        assert service.list_observations() == []


class TestListingAndExport:
    """Tests for filtered listing and CSV export."""

    def test_filtered_observations(self, service, session):
        service.submit_observation(session.id, _draft())
        service.submit_observation(
            session.id, _draft(tags=["praise density"], issue_description="praise")
        )

        matched, sessions = service.filtered_observations(
            ObservationFilter(category=Category.TEXT)
        )

        assert [o.category for o in matched] == [Category.TEXT]
        assert sessions == [session]

    def test_filter_by_reporter(self, service, session):
        service.submit_observation(session.id, _draft())

        matched, _ = service.filtered_observations(ObservationFilter(reporter="Bob"))

        assert matched == []

    def test_export(self, service, session):
        service.submit_observation(session.id, _draft())

        body = service.export(ObservationFilter())

        lines = body.split("\n")
        assert len(lines) == 2
        assert '"Alice","iPad",""' in lines[1]
        assert '"TTS issue"' in lines[1]

    def test_listing_respects_limit(self, store, session):
        service = CollectionService(
            store=store,
            config=StorageConfig(observation_limit=1),
            clock=lambda: NOW,
        )
        service.submit_observation(session.id, _draft())
        service.submit_observation(session.id, _draft())

        assert len(service.list_observations()) == 1
