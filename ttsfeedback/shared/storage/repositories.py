"""PostgreSQL repositories for tester profiles and observations.

Table layout (see schema.sql):
- sessions: id, reporter_name, tester_device, tester_os, created_at
- observations: id, session_id, course_name, category, tags,
  issue_description, feeling_tags, feeling_other, created_at

Deleting a session cascades to its observations at the database level.
"""
import logging
from typing import Any, Dict

from ttsfeedback.shared.database import BaseRepository, ConnectionManager
from ttsfeedback.shared.models import Category, Observation, Session, parse_timestamp

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository[Session]):
    """Repository for tester/device profiles."""

    columns = ("id", "reporter_name", "tester_device", "tester_os", "created_at")

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "sessions")

    def _row_to_entity(self, row: tuple) -> Session:
        return Session(
            id=str(row[0]),
            reporter_name=row[1],
            tester_device=row[2] or "",
            tester_os=row[3],
            created_at=parse_timestamp(row[4]),
        )

    def _entity_to_params(self, entity: Session) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "reporter_name": entity.reporter_name,
            "tester_device": entity.tester_device,
            "tester_os": entity.tester_os,
            "created_at": entity.created_at,
        }


class ObservationRepository(BaseRepository[Observation]):
    """Repository for the append-only observation log."""

    columns = (
        "id",
        "session_id",
        "course_name",
        "category",
        "tags",
        "issue_description",
        "feeling_tags",
        "feeling_other",
        "created_at",
    )

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "observations")

    def _row_to_entity(self, row: tuple) -> Observation:
        """Convert database row to Observation.

        ``tags`` and ``feeling_tags`` are text[] columns, which psycopg2
        returns as Python lists.
        """
        return Observation(
            id=str(row[0]),
            session_id=str(row[1]),
            course_name=row[2],
            category=Category(row[3]),
            tags=tuple(row[4] or ()),
            issue_description=row[5],
            feeling_tags=tuple(row[6] or ()),
            feeling_other=row[7],
            created_at=parse_timestamp(row[8]),
        )

    def _entity_to_params(self, entity: Observation) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "session_id": entity.session_id,
            "course_name": entity.course_name,
            "category": entity.category.value,
            "tags": list(entity.tags),
            "issue_description": entity.issue_description,
            "feeling_tags": list(entity.feeling_tags),
            "feeling_other": entity.feeling_other,
            "created_at": entity.created_at,
        }
