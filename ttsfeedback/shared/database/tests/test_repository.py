"""Tests for base repository pattern."""
import pytest
from unittest.mock import MagicMock
from dataclasses import dataclass
from typing import Any, Dict

from ttsfeedback.shared.database.repository import (
    BaseRepository,
    RepositoryError,
    NotFoundError,
    DuplicateError,
)


@dataclass
class SampleEntity:
    """Entity used by the repository tests."""
    id: str
    name: str
    value: int


class SampleRepository(BaseRepository[SampleEntity]):
    """Concrete repository for testing."""

    columns = ("id", "name", "value")

    def _row_to_entity(self, row: tuple) -> SampleEntity:
        return SampleEntity(id=row[0], name=row[1], value=row[2])

    def _entity_to_params(self, entity: SampleEntity) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "name": entity.name,
            "value": entity.value,
        }


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def connection(cursor):
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


@pytest.fixture
def repository(connection):
    manager = MagicMock()
    manager.get_connection.return_value.__enter__.return_value = connection
    return SampleRepository(manager, "sample_table")


class TestRepositoryExceptions:
    """Tests for repository exception classes."""

    def test_repository_error(self):
        error = RepositoryError("Test error")
        assert str(error) == "Test error"

    def test_not_found_error(self):
        assert isinstance(NotFoundError("missing"), RepositoryError)

    def test_duplicate_error(self):
        assert isinstance(DuplicateError("dup"), RepositoryError)


class TestBaseRepository:
    """Tests for BaseRepository class."""

    def test_initialization(self, repository):
        assert repository.table_name == "sample_table"
        assert repository.select_clause == "SELECT id, name, value FROM sample_table"

    def test_find_by_id(self, repository, cursor):
        cursor.fetchone.return_value = ("id_1", "alpha", 3)

        entity = repository.find_by_id("id_1")

        assert entity == SampleEntity(id="id_1", name="alpha", value=3)
        query, params = cursor.execute.call_args.args
        assert "WHERE id = %s" in query
        assert params == ("id_1",)

    def test_find_by_id_missing(self, repository, cursor):
        cursor.fetchone.return_value = None

        assert repository.find_by_id("nope") is None

    def test_find_all_orders_newest_first(self, repository, cursor):
        cursor.fetchall.return_value = [("a", "x", 1), ("b", "y", 2)]

        entities = repository.find_all(limit=10)

        assert [e.id for e in entities] == ["a", "b"]
        query, params = cursor.execute.call_args.args
        assert "ORDER BY created_at DESC" in query
        assert params == (10, 0)

    def test_insert_returns_stored_entity(self, repository, cursor, connection):
        cursor.fetchone.return_value = ("id_1", "alpha", 3)

        stored = repository.insert(SampleEntity(id="id_1", name="alpha", value=3))

        assert stored.id == "id_1"
        connection.commit.assert_called_once()
        query, params = cursor.execute.call_args.args
        assert "INSERT INTO sample_table (id, name, value)" in query
        assert params == ["id_1", "alpha", 3]

    def test_insert_duplicate_raises(self, repository, cursor):
        cursor.fetchone.return_value = None

        with pytest.raises(DuplicateError):
            repository.insert(SampleEntity(id="id_1", name="alpha", value=3))

    def test_update(self, repository, cursor):
        cursor.fetchone.return_value = ("id_1", "beta", 3)

        updated = repository.update("id_1", {"name": "beta"})

        assert updated.name == "beta"
        query, params = cursor.execute.call_args.args
        assert "SET name = %s" in query
        assert params == ["beta", "id_1"]

    def test_update_missing_raises(self, repository, cursor):
        cursor.fetchone.return_value = None

        with pytest.raises(NotFoundError):
            repository.update("id_1", {"name": "beta"})

    def test_delete(self, repository, cursor):
        cursor.rowcount = 1

        assert repository.delete("id_1") is True

    def test_delete_missing(self, repository, cursor):
        cursor.rowcount = 0

        assert repository.delete("id_1") is False
