"""TTL-driven deletion of expired log records from both stores."""

import asyncio
import logging
import uuid

from pydantic import BaseModel, Field

from logcore.archive.adapter import ArchiveStore, archive_key
from logcore.config.constants import CLEANUP_SERVICE_NAME, MS_PER_DAY
from logcore.db.base import epoch_millis
from logcore.db.enums import LogLevel, LogSource
from logcore.db.operations import ConfigRepository, LogRepository
from logcore.db.session import DatabaseManager
from logcore.models import DefaultConfig, LogEntry

logger = logging.getLogger(__name__)


class ServiceCleanupResult(BaseModel):
    service_name: str
    ttl_days: int
    deleted: int = 0
    archive_failures: int = 0
    error: str | None = None


class CleanupStats(BaseModel):
    """Outcome of one cleanup pass."""

    total_deleted: int = 0
    services_processed: int = 0
    services: list[ServiceCleanupResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class ServiceCleanupPreview(BaseModel):
    service_name: str
    ttl_days: int
    logs_to_delete: int
    oldest_log_age_days: int


class CleanupPreview(BaseModel):
    """Dry-run statistics: what a cleanup pass would delete right now."""

    services: list[ServiceCleanupPreview] = Field(default_factory=list)
    total_logs_to_delete: int = 0


class CleanupBatcher:
    """Deletes records older than each service's TTL, in bounded batches.

    Archive copies are deleted first (failures are logged and do not keep the
    metadata row alive), then the batch's metadata rows in one statement.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        archive: ArchiveStore,
        *,
        log_repository: LogRepository | None = None,
        config_repository: ConfigRepository | None = None,
        batch_size: int | None = None,
    ) -> None:
        self._db = db_manager
        self._archive = archive
        self._logs = log_repository or LogRepository()
        self._configs = config_repository or ConfigRepository()
        self._batch_size_override = batch_size

    async def _load_plan(self) -> tuple[DefaultConfig, dict[str, int], list[str]]:
        async with self._db.session() as session:
            defaults = await self._configs.get_default_config(session)
            overrides = await self._configs.ttl_overrides(session)
            services = await self._logs.distinct_services(session)
        return defaults, overrides, services

    @staticmethod
    def _ttl_for(service_name: str, defaults: DefaultConfig, overrides: dict[str, int]) -> int:
        ttl = overrides.get(service_name)
        return ttl if ttl is not None else defaults.default_ttl_days

    async def run_once(self) -> CleanupStats:
        defaults, overrides, services = await self._load_plan()
        batch_size = self._batch_size_override or defaults.cleanup_batch_size
        logger.info("Starting cleanup of %d service(s), batch size %d", len(services), batch_size)

        stats = CleanupStats()
        for service_name in services:
            ttl_days = self._ttl_for(service_name, defaults, overrides)
            result = ServiceCleanupResult(service_name=service_name, ttl_days=ttl_days)
            try:
                await self._cleanup_service(result, batch_size)
            except Exception as exc:
                logger.exception("Cleanup failed for service %s", service_name)
                result.error = str(exc)
                stats.errors.append(f"{service_name}: {exc}")

            stats.services.append(result)
            stats.total_deleted += result.deleted
            stats.services_processed += 1
            if result.deleted:
                logger.info("Deleted %d logs for %s (TTL %d days)", result.deleted, service_name, ttl_days)

        logger.info("Cleanup completed: %d logs deleted", stats.total_deleted)
        await self._write_summary(stats)
        return stats

    async def _cleanup_service(self, result: ServiceCleanupResult, batch_size: int) -> None:
        cutoff = epoch_millis() - result.ttl_days * MS_PER_DAY

        while True:
            async with self._db.session() as session:
                expired = await self._logs.fetch_expired(result.service_name, cutoff, batch_size, session)
            if not expired:
                return

            # Keys are deterministic, so records whose key was never recorded are still found
            keys = [log.archive_key or archive_key(log.service_name, log.id, log.timestamp) for log in expired]
            outcomes = await asyncio.gather(*(self._archive.delete(key) for key in keys), return_exceptions=True)
            for key, outcome in zip(keys, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    result.archive_failures += 1
                    logger.error("Archive delete failed for %s: %s", key, outcome)

            async with self._db.session() as session:
                await self._logs.delete_by_ids([log.id for log in expired], session)
            result.deleted += len(expired)

            if len(expired) < batch_size:
                return

    async def _write_summary(self, stats: CleanupStats) -> None:
        entry = LogEntry(
            id=str(uuid.uuid4()),
            service_name=CLEANUP_SERVICE_NAME,
            level=LogLevel.INFO,
            message=(
                f"Cleanup job completed: {stats.total_deleted} logs deleted "
                f"from {stats.services_processed} services"
            ),
            timestamp=epoch_millis(),
            metadata={"total_deleted": stats.total_deleted, "services_processed": stats.services_processed},
            source=LogSource.AGENT,
        )
        try:
            async with self._db.session() as session:
                await self._logs.insert(entry, session)
        except Exception:
            logger.exception("Failed to record cleanup summary")

    async def preview(self) -> CleanupPreview:
        defaults, overrides, services = await self._load_plan()
        now = epoch_millis()
        preview = CleanupPreview()

        async with self._db.session() as session:
            for service_name in services:
                ttl_days = self._ttl_for(service_name, defaults, overrides)
                count, oldest = await self._logs.expired_summary(service_name, now - ttl_days * MS_PER_DAY, session)
                if count == 0:
                    continue
                preview.services.append(
                    ServiceCleanupPreview(
                        service_name=service_name,
                        ttl_days=ttl_days,
                        logs_to_delete=count,
                        oldest_log_age_days=(now - (oldest or now)) // MS_PER_DAY,
                    )
                )
                preview.total_logs_to_delete += count

        return preview
