"""Shared test configuration and fixtures for analyzer tests."""

import json
import uuid
from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from analyzer.session_actor import SessionActorRegistry
from analyzer.workflow import AnalysisWorkflow
from logcore.archive.adapter import ArchiveStore
from logcore.archive.store import FilesystemObjectStore
from logcore.config.database import DatabaseSettings
from logcore.db.enums import LogLevel
from logcore.db.operations import LogRepository
from logcore.db.session import DatabaseManager
from logcore.inference.client import HttpInferenceClient
from logcore.models import LogEntry

# 2023-11-14T22:13:20Z
WINDOW_START = 1_700_000_000_000
WINDOW_END = WINDOW_START + 60 * 60 * 1000

AI_RESPONSE = json.dumps(
    {
        "summary": "Upstream timeouts dominate.",
        "patterns": ["upstream timeout"],
        "recommendations": ["raise upstream timeout"],
    }
)


@pytest.fixture
async def db_manager(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    """A DatabaseManager backed by a file SQLite database with all tables created."""
    manager = DatabaseManager(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def archive(tmp_path: Path) -> ArchiveStore:
    return ArchiveStore(FilesystemObjectStore(tmp_path / "archive"))


@pytest.fixture
def inference() -> AsyncMock:
    """Inference service answering every prompt with a well-formed analysis."""
    mock = AsyncMock(spec=HttpInferenceClient)
    mock.complete.return_value = f"Here is the analysis:\n{AI_RESPONSE}\n"
    return mock


@pytest.fixture
def registry(db_manager: DatabaseManager) -> SessionActorRegistry:
    return SessionActorRegistry(db_manager)


@pytest.fixture
def workflow(db_manager: DatabaseManager, registry: SessionActorRegistry, inference: AsyncMock) -> AnalysisWorkflow:
    return AnalysisWorkflow(db_manager, registry, inference)


@pytest.fixture
def seed_logs(db_manager: DatabaseManager):  # type: ignore[no-untyped-def]
    """Insert metadata records directly: ``await seed_logs("svc-a", LogLevel.ERROR, 5)``."""

    async def _seed(
        service_name: str,
        level: LogLevel,
        count: int,
        timestamp: int = WINDOW_START + 1000,
        message: str = "upstream timeout",
    ) -> None:
        repo = LogRepository()
        async with db_manager.session() as session:
            for i in range(count):
                entry = LogEntry(
                    id=str(uuid.uuid4()),
                    service_name=service_name,
                    level=level,
                    message=f"{message} #{i}",
                    timestamp=timestamp + i,
                )
                await repo.insert(entry, session)

    return _seed
