"""Shared test configuration and fixtures for ingest API tests."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ingest.dependencies import db_manager, get_archive, get_cleanup_batcher, get_coordinator, get_request_service
from ingest.main import app
from logcore.analysis.requests import AnalysisRequestService
from logcore.archive.adapter import ArchiveStore
from logcore.archive.store import FilesystemObjectStore
from logcore.cleanup import CleanupBatcher
from logcore.config.database import DatabaseSettings
from logcore.db.session import DatabaseManager
from logcore.exceptions import ArchiveError
from logcore.ingestion.coordinator import IngestionCoordinator
from logcore.queue.broker import DatabaseAnalysisQueue


@pytest.fixture
async def test_db(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    manager = DatabaseManager(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def archive(tmp_path: Path) -> ArchiveStore:
    return ArchiveStore(FilesystemObjectStore(tmp_path / "archive"))


@pytest.fixture
def coordinator(test_db: DatabaseManager) -> IngestionCoordinator:
    """Coordinator whose archive is down, so no write outlives the request that started it."""
    unavailable = AsyncMock(spec=ArchiveStore)
    unavailable.put.side_effect = ArchiveError("archive unavailable")
    return IngestionCoordinator(test_db, unavailable)


@pytest.fixture
def queue(test_db: DatabaseManager) -> DatabaseAnalysisQueue:
    return DatabaseAnalysisQueue(test_db)


@pytest.fixture
def override_deps(
    test_db: DatabaseManager,
    archive: ArchiveStore,
    coordinator: IngestionCoordinator,
    queue: DatabaseAnalysisQueue,
) -> Generator[None]:
    request_service = AnalysisRequestService(test_db, queue)
    cleanup_batcher = CleanupBatcher(test_db, archive)

    app.dependency_overrides[db_manager.dependency] = test_db.dependency
    app.dependency_overrides[get_archive] = lambda: archive
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    app.dependency_overrides[get_request_service] = lambda: request_service
    app.dependency_overrides[get_cleanup_batcher] = lambda: cleanup_batcher
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_deps: None) -> TestClient:
    return TestClient(app)
