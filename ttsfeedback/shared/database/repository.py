"""Base repository pattern for database operations.

Provides the common CRUD operations shared by the session and
observation tables.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from .connection import ConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found in database."""
    pass


class DuplicateError(RepositoryError):
    """Duplicate entity already exists."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common operations.

    Subclasses declare ``columns`` in table order and implement the
    row/entity conversions. Queries select those columns explicitly so
    row tuples always line up with ``_row_to_entity``.
    """

    columns: Sequence[str] = ()

    def __init__(
        self,
        connection_manager: ConnectionManager,
        table_name: str,
    ):
        """Initialize repository.

        Args:
            connection_manager: Database connection manager
            table_name: Name of the database table
        """
        self.connection_manager = connection_manager
        self.table_name = table_name

        logger.info(
            "REPOSITORY_INITIALIZED",
            extra={"table_name": table_name}
        )

    @property
    def select_clause(self) -> str:
        return f"SELECT {', '.join(self.columns)} FROM {self.table_name}"

    @abstractmethod
    def _row_to_entity(self, row: tuple) -> T:
        """Convert database row to entity.

        Args:
            row: Database row tuple, ordered as ``columns``

        Returns:
            Entity instance
        """
        pass

    @abstractmethod
    def _entity_to_params(self, entity: T) -> Dict[str, Any]:
        """Convert entity to database parameters.

        Args:
            entity: Entity instance

        Returns:
            Dictionary of column names to values
        """
        pass

    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID.

        Args:
            entity_id: Entity identifier

        Returns:
            Entity if found, None otherwise
        """
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"{self.select_clause} WHERE id = %s",
                    (entity_id,)
                )
                row = cur.fetchone()

                if row is None:
                    return None

                return self._row_to_entity(row)

    def find_all(
        self,
        limit: int = 100,
        offset: int = 0,
    ) -> List[T]:
        """Find all entities with pagination, newest first.

        Args:
            limit: Maximum entities to return
            offset: Number of entities to skip

        Returns:
            List of entities
        """
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"{self.select_clause} ORDER BY created_at DESC LIMIT %s OFFSET %s",
                    (limit, offset)
                )
                rows = cur.fetchall()

                return [self._row_to_entity(row) for row in rows]

    def insert(self, entity: T) -> T:
        """Insert a new entity.

        Args:
            entity: Entity to insert

        Returns:
            Entity as stored

        Raises:
            DuplicateError: If the id already exists
        """
        params = self._entity_to_params(entity)
        columns = list(params.keys())
        placeholders = ", ".join(["%s"] * len(columns))

        query = f"""
            INSERT INTO {self.table_name} ({", ".join(columns)})
            VALUES ({placeholders})
            ON CONFLICT (id) DO NOTHING
            RETURNING {", ".join(self.columns)}
        """

        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, list(params.values()))
                row = cur.fetchone()
                conn.commit()

        if row is None:
            raise DuplicateError(f"{self.table_name} {params.get('id')} already exists")
        return self._row_to_entity(row)

    def update(self, entity_id: str, changes: Dict[str, Any]) -> T:
        """Update selected columns of an entity.

        Args:
            entity_id: Entity identifier
            changes: Column names to new values

        Returns:
            Updated entity

        Raises:
            NotFoundError: If no row has this id
        """
        assignments = ", ".join(f"{col} = %s" for col in changes)
        query = f"""
            UPDATE {self.table_name} SET {assignments}
            WHERE id = %s
            RETURNING {", ".join(self.columns)}
        """

        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, [*changes.values(), entity_id])
                row = cur.fetchone()
                conn.commit()

        if row is None:
            raise NotFoundError(f"{self.table_name} {entity_id} not found")
        return self._row_to_entity(row)

    def delete(self, entity_id: str) -> bool:
        """Delete entity by ID.

        Args:
            entity_id: Entity identifier

        Returns:
            True if deleted, False if not found
        """
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"DELETE FROM {self.table_name} WHERE id = %s",
                    (entity_id,)
                )
                conn.commit()

                return cur.rowcount > 0
