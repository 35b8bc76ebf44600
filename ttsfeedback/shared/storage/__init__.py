"""Storage backends for tester profiles and the observation log.

One read/write interface, two implementations: the shared PostgreSQL
database and a local JSON file for offline use. The backend is chosen
once at startup by create_store().
"""

from .repositories import SessionRepository, ObservationRepository
from .store import (
    ObservationStore,
    PostgresStore,
    LocalFileStore,
    StorageConfig,
    create_store,
    BACKEND_POSTGRES,
    BACKEND_LOCAL,
    EDITABLE_SESSION_FIELDS,
)

__all__ = [
    "SessionRepository",
    "ObservationRepository",
    "ObservationStore",
    "PostgresStore",
    "LocalFileStore",
    "StorageConfig",
    "create_store",
    "BACKEND_POSTGRES",
    "BACKEND_LOCAL",
    "EDITABLE_SESSION_FIELDS",
]
