"""Process-wide singletons and FastAPI dependency providers."""

import functools

from ingest.settings import get_settings
from logcore.analysis.requests import AnalysisRequestService
from logcore.archive.adapter import ArchiveStore
from logcore.archive.store import FilesystemObjectStore
from logcore.cleanup import CleanupBatcher
from logcore.db.session import DatabaseManager
from logcore.ingestion.coordinator import IngestionCoordinator
from logcore.queue.broker import DatabaseAnalysisQueue

db_manager = DatabaseManager.from_url(get_settings().DATABASE_URL)


@functools.lru_cache(maxsize=1)
def get_archive() -> ArchiveStore:
    return ArchiveStore(FilesystemObjectStore(get_settings().ARCHIVE_ROOT))


@functools.lru_cache(maxsize=1)
def get_coordinator() -> IngestionCoordinator:
    return IngestionCoordinator(db_manager, get_archive())


@functools.lru_cache(maxsize=1)
def get_request_service() -> AnalysisRequestService:
    settings = get_settings()
    queue = DatabaseAnalysisQueue(
        db_manager,
        visibility_timeout=settings.QUEUE_VISIBILITY_TIMEOUT_SECONDS,
        max_deliveries=settings.QUEUE_MAX_DELIVERIES,
        retry_base_delay=settings.QUEUE_RETRY_BASE_DELAY_SECONDS,
    )
    return AnalysisRequestService(db_manager, queue, max_range_days=settings.ANALYSIS_MAX_RANGE_DAYS)


@functools.lru_cache(maxsize=1)
def get_cleanup_batcher() -> CleanupBatcher:
    return CleanupBatcher(db_manager, get_archive())
