"""Database operations: the metadata store adapter.

Repositories are stateless; every method takes the caller's ``AsyncSession``
so that the caller decides the transaction boundary.
"""

import json
import logging
from typing import Any, NamedTuple

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from logcore.config.constants import METADATA_MESSAGE_MAX_CHARS
from logcore.db.enums import JobStatus, LogLevel
from logcore.db.models.analysis import AnalysisSessionRow
from logcore.db.models.config import DefaultConfigEntry, ServiceConfig
from logcore.db.models.log import LogRecord
from logcore.db.models.operations import GlobalAnalysisRow, JobTrackerRow
from logcore.models import DefaultConfig, EffectiveServiceConfig, LogEntry, ServiceConfigUpdate, StoredLog

logger = logging.getLogger(__name__)

_ERROR_LEVELS = (LogLevel.ERROR, LogLevel.CRITICAL)


class ExpiredLog(NamedTuple):
    id: str
    service_name: str
    timestamp: int
    archive_key: str | None


class LevelTotals(NamedTuple):
    total_logs: int
    total_errors: int
    total_warnings: int
    unique_services: int


class LogRepository:
    """Reads and writes the metadata copy of log records."""

    async def insert(self, entry: LogEntry, session: AsyncSession, archive_key: str | None = None) -> LogRecord:
        """Insert the metadata copy of a log entry. The message is truncated."""
        record = LogRecord(
            id=entry.id,
            service_name=entry.service_name,
            level=entry.level,
            message=entry.message[:METADATA_MESSAGE_MAX_CHARS],
            timestamp=entry.timestamp,
            metadata_json=json.dumps(entry.metadata or {}),
            source=entry.source,
            archive_key=archive_key,
        )
        session.add(record)
        await session.flush()
        return record

    async def set_archive_key(self, log_id: str, archive_key: str, session: AsyncSession) -> None:
        await session.execute(update(LogRecord).where(LogRecord.id == log_id).values(archive_key=archive_key))

    async def get(self, log_id: str, session: AsyncSession) -> LogRecord | None:
        result = await session.execute(select(LogRecord).where(LogRecord.id == log_id))
        return result.scalar_one_or_none()

    async def search(
        self,
        session: AsyncSession,
        *,
        service_name: str | None = None,
        level: LogLevel | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        search_term: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LogRecord]:
        """Search records newest-first. The time range is [start_time, end_time)."""
        stmt = select(LogRecord)
        if service_name:
            stmt = stmt.where(LogRecord.service_name == service_name)
        if level:
            stmt = stmt.where(LogRecord.level == level)
        if start_time is not None:
            stmt = stmt.where(LogRecord.timestamp >= start_time)
        if end_time is not None:
            stmt = stmt.where(LogRecord.timestamp < end_time)
        if search_term:
            stmt = stmt.where(LogRecord.message.contains(search_term, autoescape=True))
        stmt = stmt.order_by(LogRecord.timestamp.desc()).limit(limit).offset(offset)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def distinct_services(self, session: AsyncSession) -> list[str]:
        result = await session.execute(select(LogRecord.service_name).distinct().order_by(LogRecord.service_name))
        return list(result.scalars().all())

    async def fetch_expired(
        self,
        service_name: str,
        cutoff: int,
        limit: int,
        session: AsyncSession,
    ) -> list[ExpiredLog]:
        """Return up to ``limit`` records older than ``cutoff``, oldest first."""
        result = await session.execute(
            select(LogRecord.id, LogRecord.service_name, LogRecord.timestamp, LogRecord.archive_key)
            .where(LogRecord.service_name == service_name, LogRecord.timestamp < cutoff)
            .order_by(LogRecord.timestamp.asc())
            .limit(limit)
        )
        return [ExpiredLog(row.id, row.service_name, row.timestamp, row.archive_key) for row in result.all()]

    async def expired_summary(self, service_name: str, cutoff: int, session: AsyncSession) -> tuple[int, int | None]:
        """Return (count, oldest timestamp) of records older than ``cutoff``."""
        result = await session.execute(
            select(func.count(LogRecord.id), func.min(LogRecord.timestamp)).where(
                LogRecord.service_name == service_name, LogRecord.timestamp < cutoff
            )
        )
        count, oldest = result.one()
        return int(count or 0), oldest

    async def delete_by_ids(self, log_ids: list[str], session: AsyncSession) -> int:
        if not log_ids:
            return 0
        cursor = await session.execute(delete(LogRecord).where(LogRecord.id.in_(log_ids)))
        deleted: int = cursor.rowcount  # type: ignore[attr-defined]
        return deleted

    async def count_by_level(
        self,
        service_name: str,
        session: AsyncSession,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> dict[str, int]:
        stmt = select(LogRecord.level, func.count(LogRecord.id)).where(LogRecord.service_name == service_name)
        if start_time is not None:
            stmt = stmt.where(LogRecord.timestamp >= start_time)
        if end_time is not None:
            stmt = stmt.where(LogRecord.timestamp < end_time)
        result = await session.execute(stmt.group_by(LogRecord.level))
        return {LogLevel(level).value: int(count) for level, count in result.all()}

    async def stats(
        self,
        service_name: str,
        session: AsyncSession,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> dict[str, Any]:
        """Total, per-level counts and timestamp bounds for a service."""
        stmt = select(func.count(LogRecord.id), func.min(LogRecord.timestamp), func.max(LogRecord.timestamp)).where(
            LogRecord.service_name == service_name
        )
        if start_time is not None:
            stmt = stmt.where(LogRecord.timestamp >= start_time)
        if end_time is not None:
            stmt = stmt.where(LogRecord.timestamp < end_time)
        total, oldest, newest = (await session.execute(stmt)).one()
        by_level = await self.count_by_level(service_name, session, start_time, end_time)
        return {
            "total": int(total or 0),
            "by_level": by_level,
            "oldest_timestamp": oldest,
            "newest_timestamp": newest,
        }

    async def error_counts_since(
        self,
        since: int,
        min_errors: int,
        session: AsyncSession,
    ) -> list[tuple[str, int]]:
        """Services with at least ``min_errors`` ERROR records since ``since``, busiest first."""
        error_count = func.count(LogRecord.id).label("error_count")
        result = await session.execute(
            select(LogRecord.service_name, error_count)
            .where(LogRecord.level == LogLevel.ERROR, LogRecord.timestamp > since)
            .group_by(LogRecord.service_name)
            .having(error_count >= min_errors)
            .order_by(error_count.desc())
        )
        return [(row.service_name, int(row.error_count)) for row in result.all()]

    async def level_totals(self, start_time: int, end_time: int, session: AsyncSession) -> LevelTotals:
        """Counts across every service over [start_time, end_time)."""
        result = await session.execute(
            select(
                func.count(LogRecord.id),
                func.sum(case((LogRecord.level.in_(_ERROR_LEVELS), 1), else_=0)),
                func.sum(case((LogRecord.level == LogLevel.WARN, 1), else_=0)),
                func.count(LogRecord.service_name.distinct()),
            ).where(LogRecord.timestamp >= start_time, LogRecord.timestamp < end_time)
        )
        total, errors, warnings, services = result.one()
        return LevelTotals(int(total or 0), int(errors or 0), int(warnings or 0), int(services or 0))

    async def service_breakdown(
        self,
        start_time: int,
        end_time: int,
        session: AsyncSession,
        limit: int = 50,
    ) -> list[tuple[str, int, int]]:
        """(service, log count, error count) over [start_time, end_time), most errors first."""
        error_count = func.sum(case((LogRecord.level.in_(_ERROR_LEVELS), 1), else_=0)).label("error_count")
        result = await session.execute(
            select(LogRecord.service_name, func.count(LogRecord.id).label("log_count"), error_count)
            .where(LogRecord.timestamp >= start_time, LogRecord.timestamp < end_time)
            .group_by(LogRecord.service_name)
            .order_by(error_count.desc(), LogRecord.service_name)
            .limit(limit)
        )
        return [(row.service_name, int(row.log_count), int(row.error_count or 0)) for row in result.all()]

    @staticmethod
    def to_stored_log(record: LogRecord) -> StoredLog:
        return StoredLog(
            id=record.id,
            service_name=record.service_name,
            level=record.level,
            message=record.message,
            timestamp=record.timestamp,
            metadata=json.loads(record.metadata_json) if record.metadata_json else {},
            source=record.source,
            archive_key=record.archive_key,
        )


class ConfigRepository:
    """Service configs with fallback to the global defaults."""

    async def get_default_config(self, session: AsyncSession) -> DefaultConfig:
        """Read the default_config table, typed. Unknown keys are ignored."""
        result = await session.execute(select(DefaultConfigEntry))
        values: dict[str, str] = {row.key: row.value for row in result.scalars().all()}
        known = {k: v for k, v in values.items() if k in DefaultConfig.model_fields}
        return DefaultConfig.model_validate(known)

    async def update_default_config(self, key: str, value: str, session: AsyncSession) -> None:
        if key not in DefaultConfig.model_fields:
            raise ValueError(f"Unknown default config key: {key}")
        existing = await session.get(DefaultConfigEntry, key)
        if existing is None:
            session.add(DefaultConfigEntry(key=key, value=value))
        else:
            existing.value = value
        await session.flush()

    async def get_service_config(self, service_name: str, session: AsyncSession) -> ServiceConfig | None:
        return await session.get(ServiceConfig, service_name)

    async def list_service_configs(self, session: AsyncSession) -> list[ServiceConfig]:
        result = await session.execute(select(ServiceConfig).order_by(ServiceConfig.service_name))
        return list(result.scalars().all())

    async def get_effective_config(self, service_name: str, session: AsyncSession) -> EffectiveServiceConfig:
        config = await self.get_service_config(service_name, session)
        if config is not None:
            return EffectiveServiceConfig(
                service_name=service_name,
                ttl_days=config.ttl_days,
                retention_policy=config.retention_policy,
                alert_on_errors=config.alert_on_errors,
                max_logs_per_day=config.max_logs_per_day,
            )
        defaults = await self.get_default_config(session)
        return EffectiveServiceConfig(
            service_name=service_name,
            ttl_days=defaults.default_ttl_days,
            retention_policy=defaults.default_retention_policy,
            is_default=True,
        )

    async def update_service_config(
        self,
        service_name: str,
        changes: ServiceConfigUpdate,
        session: AsyncSession,
    ) -> ServiceConfig:
        """Update a service config, creating it from the defaults on first use."""
        config = await self.get_service_config(service_name, session)
        if config is None:
            defaults = await self.get_default_config(session)
            config = ServiceConfig(
                service_name=service_name,
                ttl_days=changes.ttl_days if changes.ttl_days is not None else defaults.default_ttl_days,
                retention_policy=changes.retention_policy or defaults.default_retention_policy,
                alert_on_errors=bool(changes.alert_on_errors),
                max_logs_per_day=changes.max_logs_per_day,
            )
            session.add(config)
            logger.info("Created config for service %s (ttl=%d days)", service_name, config.ttl_days)
        else:
            for field, value in changes.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(config, field, value)
        await session.flush()
        return config

    async def ttl_overrides(self, session: AsyncSession) -> dict[str, int]:
        result = await session.execute(select(ServiceConfig.service_name, ServiceConfig.ttl_days))
        return {row.service_name: row.ttl_days for row in result.all()}


class SessionRepository:
    """The queryable mirror of analysis sessions."""

    async def get(self, session_id: str, session: AsyncSession) -> AnalysisSessionRow | None:
        return await session.get(AnalysisSessionRow, session_id)

    async def list_recent(
        self,
        session: AsyncSession,
        service_name: str | None = None,
        limit: int = 20,
    ) -> list[AnalysisSessionRow]:
        stmt = select(AnalysisSessionRow)
        if service_name:
            stmt = stmt.where(AnalysisSessionRow.service_name == service_name)
        stmt = stmt.order_by(AnalysisSessionRow.created_at.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())


class JobTrackerRepository:
    """Last-run bookkeeping for periodic jobs."""

    async def get(self, job_name: str, session: AsyncSession) -> JobTrackerRow | None:
        return await session.get(JobTrackerRow, job_name)

    async def record_run(
        self,
        job_name: str,
        run_at: int,
        status: JobStatus,
        session: AsyncSession,
        *,
        error_message: str | None = None,
    ) -> JobTrackerRow:
        """Record one run. A success also moves ``last_success_at`` to ``run_at``."""
        row = await session.get(JobTrackerRow, job_name)
        if row is None:
            row = JobTrackerRow(job_name=job_name, last_run_at=run_at, last_run_status=status, run_count=0)
            session.add(row)
        row.last_run_at = run_at
        row.last_run_status = status
        row.run_count += 1
        row.error_message = error_message
        if status == JobStatus.SUCCESS:
            row.last_success_at = run_at
        await session.flush()
        return row


class GlobalAnalysisRepository:
    """Stored cross-service analyses."""

    async def add(self, row: GlobalAnalysisRow, session: AsyncSession) -> GlobalAnalysisRow:
        session.add(row)
        await session.flush()
        return row
