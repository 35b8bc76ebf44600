"""Storage backends for profiles and the observation log.

Two interchangeable backends implement ObservationStore:
- PostgresStore: shared team database (psycopg2 repositories)
- LocalFileStore: single JSON document on disk, for offline use

create_store() picks one at startup. Nothing downstream branches on
which backend is in use.
"""
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ttsfeedback.shared.database import (
    ConnectionManager,
    DatabaseConfig,
    NotFoundError,
    DuplicateError,
)
from ttsfeedback.shared.models import Observation, Session
from .repositories import ObservationRepository, SessionRepository

logger = logging.getLogger(__name__)

BACKEND_POSTGRES = "postgres"
BACKEND_LOCAL = "local"

# Columns a tester may change on an existing profile
EDITABLE_SESSION_FIELDS = ("tester_device", "tester_os")


@dataclass(frozen=True)
class StorageConfig:
    """Storage backend selection and listing limits."""
    backend: str = BACKEND_LOCAL
    local_path: str = "tts_collect_store.json"
    session_limit: int = 200
    observation_limit: int = 5000
    secret_arn: str = ""
    secret_region: str = "us-east-1"

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Create config from environment variables.

        Environment variables:
            STORAGE_BACKEND: "postgres" or "local" (default: postgres
                when DB_HOST or DB_SECRET_ARN is set, local otherwise)
            LOCAL_STORE_PATH: JSON file for the local backend
            SESSION_LIST_LIMIT: Max profiles loaded (default 200)
            OBSERVATION_LIST_LIMIT: Max observations loaded (default 5000)
            DB_SECRET_ARN: Secrets Manager ARN holding PostgreSQL credentials
            AWS_REGION: Region of that secret (default us-east-1)
        """
        has_database = os.getenv("DB_HOST") or os.getenv("DB_SECRET_ARN")
        default_backend = BACKEND_POSTGRES if has_database else BACKEND_LOCAL
        return cls(
            backend=os.getenv("STORAGE_BACKEND", default_backend),
            local_path=os.getenv("LOCAL_STORE_PATH", "tts_collect_store.json"),
            session_limit=int(os.getenv("SESSION_LIST_LIMIT", "200")),
            observation_limit=int(os.getenv("OBSERVATION_LIST_LIMIT", "5000")),
            secret_arn=os.getenv("DB_SECRET_ARN", ""),
            secret_region=os.getenv("AWS_REGION", "us-east-1"),
        )


class ObservationStore(ABC):
    """Uniform read/write interface over a storage backend."""

    backend_name = ""

    @abstractmethod
    def list_sessions(self, limit: int = 200) -> List[Session]:
        """Profiles, newest first."""

    @abstractmethod
    def list_observations(self, limit: int = 5000) -> List[Observation]:
        """Observation log, newest first."""

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]:
        """Look up one profile."""

    @abstractmethod
    def insert_session(self, session: Session) -> Session:
        """Store a new profile."""

    @abstractmethod
    def insert_observation(self, observation: Observation) -> Observation:
        """Append an observation to the log."""

    @abstractmethod
    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        """Change editable profile fields.

        Raises:
            NotFoundError: If the profile does not exist
        """

    @abstractmethod
    def delete_session(self, session_id: str) -> bool:
        """Delete a profile and all of its observations."""

    def health_check(self) -> Dict[str, Any]:
        return {"status": "ok", "healthy": True, "backend": self.backend_name}


def _check_editable(changes: Dict[str, Any]) -> None:
    unknown = set(changes) - set(EDITABLE_SESSION_FIELDS)
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")


class PostgresStore(ObservationStore):
    """Store backed by the shared PostgreSQL database."""

    backend_name = BACKEND_POSTGRES

    def __init__(self, connection_manager: ConnectionManager):
        self.connection_manager = connection_manager
        self.sessions = SessionRepository(connection_manager)
        self.observations = ObservationRepository(connection_manager)

    def list_sessions(self, limit: int = 200) -> List[Session]:
        return self.sessions.find_all(limit=limit)

    def list_observations(self, limit: int = 5000) -> List[Observation]:
        return self.observations.find_all(limit=limit)

    def get_session(self, session_id: str) -> Optional[Session]:
        return self.sessions.find_by_id(session_id)

    def insert_session(self, session: Session) -> Session:
        return self.sessions.insert(session)

    def insert_observation(self, observation: Observation) -> Observation:
        return self.observations.insert(observation)

    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        _check_editable(changes)
        return self.sessions.update(session_id, changes)

    def delete_session(self, session_id: str) -> bool:
        # observations.session_id is ON DELETE CASCADE
        return self.sessions.delete(session_id)

    def health_check(self) -> Dict[str, Any]:
        if not self.connection_manager.initialized:
            try:
                self.connection_manager.initialize()
            except Exception as e:
                return {
                    "status": "error",
                    "healthy": False,
                    "backend": self.backend_name,
                    "error": str(e),
                }
        health = self.connection_manager.health_check()
        health["backend"] = self.backend_name
        return health


class LocalFileStore(ObservationStore):
    """Store backed by a JSON file on the local disk.

    Document layout: {"sessions": [...], "observations": [...]}, each list
    newest first. Every write rewrites the whole document.
    """

    backend_name = BACKEND_LOCAL

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

        logger.info(
            "LOCAL_STORE_INITIALIZED",
            extra={"path": str(self.path), "exists": self.path.exists()}
        )

    def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self.path.exists():
            return {"sessions": [], "observations": []}
        with self.path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        return {
            "sessions": list(document.get("sessions") or []),
            "observations": list(document.get("observations") or []),
        }

    def _save(self, document: Dict[str, List[Dict[str, Any]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def list_sessions(self, limit: int = 200) -> List[Session]:
        with self._lock:
            document = self._load()
        return [Session.from_dict(row) for row in document["sessions"][:limit]]

    def list_observations(self, limit: int = 5000) -> List[Observation]:
        with self._lock:
            document = self._load()
        return [Observation.from_dict(row) for row in document["observations"][:limit]]

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            document = self._load()
        for row in document["sessions"]:
            if row["id"] == session_id:
                return Session.from_dict(row)
        return None

    def insert_session(self, session: Session) -> Session:
        with self._lock:
            document = self._load()
            if any(row["id"] == session.id for row in document["sessions"]):
                raise DuplicateError(f"sessions {session.id} already exists")
            document["sessions"].insert(0, session.to_dict())
            self._save(document)
        return session

    def insert_observation(self, observation: Observation) -> Observation:
        with self._lock:
            document = self._load()
            if any(row["id"] == observation.id for row in document["observations"]):
                raise DuplicateError(f"observations {observation.id} already exists")
            document["observations"].insert(0, observation.to_dict())
            self._save(document)
        return observation

    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        _check_editable(changes)
        with self._lock:
            document = self._load()
            for row in document["sessions"]:
                if row["id"] == session_id:
                    row.update(changes)
                    self._save(document)
                    return Session.from_dict(row)
        raise NotFoundError(f"sessions {session_id} not found")

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            document = self._load()
            remaining = [row for row in document["sessions"] if row["id"] != session_id]
            if len(remaining) == len(document["sessions"]):
                return False
            kept = [
                row for row in document["observations"]
                if row["session_id"] != session_id
            ]
            removed = len(document["observations"]) - len(kept)
            self._save({"sessions": remaining, "observations": kept})

        logger.info(
            "LOCAL_SESSION_DELETED",
            extra={"session_id": session_id, "observations_removed": removed}
        )
        return True


def _load_database_config(config: StorageConfig) -> DatabaseConfig:
    if config.secret_arn:
        return DatabaseConfig.from_secrets_manager(config.secret_arn, region=config.secret_region)
    return DatabaseConfig.from_env()


def create_store(
    config: Optional[StorageConfig] = None,
    database_config: Optional[DatabaseConfig] = None,
) -> ObservationStore:
    """Build the configured storage backend.

    Args:
        config: Backend selection (from environment if None)
        database_config: PostgreSQL settings. When None they come from
            Secrets Manager if `secret_arn` is set, else from the environment.

    Returns:
        ObservationStore implementation
    """
    config = config or StorageConfig.from_env()

    if config.backend == BACKEND_POSTGRES:
        if database_config is None:
            database_config = _load_database_config(config)
        manager = ConnectionManager(database_config)
        store: ObservationStore = PostgresStore(manager)
    elif config.backend == BACKEND_LOCAL:
        store = LocalFileStore(config.local_path)
    else:
        raise ValueError(f"Unknown storage backend: {config.backend}")

    logger.info(
        "STORE_SELECTED",
        extra={"backend": store.backend_name}
    )
    return store
