"""Database connection management for TTS feedback services.

Provides connection pooling, health checks, and repository base classes
for PostgreSQL.
"""

from .connection import (
    DatabaseConfig,
    ConnectionManager,
)
from .repository import (
    BaseRepository,
    RepositoryError,
    NotFoundError,
    DuplicateError,
)

__all__ = [
    "DatabaseConfig",
    "ConnectionManager",
    "BaseRepository",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
]
