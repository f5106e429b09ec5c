"""Shared test configuration and fixtures for logcore tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from logcore.archive.adapter import ArchiveStore
from logcore.archive.store import FilesystemObjectStore
from logcore.config.database import DatabaseSettings
from logcore.db.session import DatabaseManager


@pytest.fixture
async def db_manager(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    """A DatabaseManager backed by a file SQLite database with all tables created."""
    manager = DatabaseManager(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def object_store(tmp_path: Path) -> FilesystemObjectStore:
    return FilesystemObjectStore(tmp_path / "archive")


@pytest.fixture
def archive(object_store: FilesystemObjectStore) -> ArchiveStore:
    return ArchiveStore(object_store)
