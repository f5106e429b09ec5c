"""Log ingestion and query endpoints: class-based router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ingest.constants import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT
from ingest.dependencies import db_manager, get_archive, get_coordinator
from ingest.logs.schemas import (
    BatchIngestRequest,
    BatchIngestResponse,
    FullLogResponse,
    IngestResponse,
    LogSearchResponse,
    ServicesResponse,
    ServiceStats,
    TailIngestRequest,
    stats_from_dict,
)
from logcore.archive.adapter import ArchiveStore
from logcore.db.enums import LogLevel
from logcore.db.operations import LogRepository
from logcore.exceptions import ArchiveError, ValidationError
from logcore.ingestion.coordinator import IngestionCoordinator
from logcore.ingestion.validation import check_batch_size, normalize_level
from logcore.models import LogEntry, LogSubmission, StoredLog

logger = logging.getLogger(__name__)


class LogsRouter:
    """Class-based router for ingestion and log queries."""

    def __init__(self) -> None:
        self._logs = LogRepository()
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("/ingest", self.ingest, methods=["POST"], response_model=IngestResponse)
        r.add_api_route("/ingest/batch", self.ingest_batch, methods=["POST"], response_model=BatchIngestResponse)
        r.add_api_route("/ingest/tail", self.ingest_tail, methods=["POST"], response_model=BatchIngestResponse)
        r.add_api_route("/logs/search", self.search, methods=["GET"], response_model=LogSearchResponse)
        r.add_api_route("/logs/{log_id}", self.get_log, methods=["GET"], response_model=StoredLog)
        r.add_api_route("/logs/{log_id}/full", self.get_full_log, methods=["GET"], response_model=FullLogResponse)
        r.add_api_route("/services", self.services, methods=["GET"], response_model=ServicesResponse)
        r.add_api_route("/stats/{service_name}", self.stats, methods=["GET"], response_model=ServiceStats)

    async def ingest(
        self,
        submission: LogSubmission,
        coordinator: Annotated[IngestionCoordinator, Depends(get_coordinator)],
    ) -> IngestResponse:
        """Store one log event. The archive copy is written in the background."""
        log_id = await coordinator.ingest(submission)
        return IngestResponse(id=log_id)

    async def ingest_batch(
        self,
        body: BatchIngestRequest,
        coordinator: Annotated[IngestionCoordinator, Depends(get_coordinator)],
    ) -> BatchIngestResponse:
        """Store up to 1000 log events. Invalid events are reported, not fatal."""
        check_batch_size(len(body.logs))
        result = await coordinator.batch_ingest(body.logs)
        return BatchIngestResponse(success=result.failed == 0, **result.model_dump())

    async def ingest_tail(
        self,
        body: TailIngestRequest,
        coordinator: Annotated[IngestionCoordinator, Depends(get_coordinator)],
    ) -> BatchIngestResponse:
        """Store console lines and exceptions captured from producer invocations."""
        result = await coordinator.ingest_tail_events(body.events)
        return BatchIngestResponse(success=result.failed == 0, **result.model_dump())

    async def search(
        self,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        service_name: str | None = None,
        level: str | None = None,
        start_time: int | None = Query(default=None, ge=0),
        end_time: int | None = Query(default=None, ge=0),
        q: str | None = None,
        limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_SEARCH_LIMIT),
        offset: int = Query(default=0, ge=0),
    ) -> LogSearchResponse:
        """Search metadata records, newest first. ``end_time`` is exclusive."""
        level_filter: LogLevel | None = None
        if level:
            try:
                level_filter = LogLevel(normalize_level(level))
            except ValueError as exc:
                raise ValidationError(f"Invalid log level: {level}") from exc

        records = await self._logs.search(
            session,
            service_name=service_name,
            level=level_filter,
            start_time=start_time,
            end_time=end_time,
            search_term=q,
            limit=limit,
            offset=offset,
        )
        logs = [LogRepository.to_stored_log(r) for r in records]
        return LogSearchResponse(logs=logs, count=len(logs), limit=limit, offset=offset)

    async def get_log(
        self,
        log_id: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
    ) -> StoredLog:
        record = await self._logs.get(log_id, session)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Log {log_id} not found")
        return LogRepository.to_stored_log(record)

    async def get_full_log(
        self,
        log_id: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        archive: Annotated[ArchiveStore, Depends(get_archive)],
    ) -> FullLogResponse:
        """Full record from the archive, falling back to the metadata copy."""
        record = await self._logs.get(log_id, session)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Log {log_id} not found")

        if record.archive_key:
            try:
                archived = await archive.get(record.archive_key)
            except ArchiveError:
                logger.warning("Archive read failed for log %s, serving metadata copy", log_id, exc_info=True)
                archived = None
            if archived is not None:
                return FullLogResponse(log=archived, archived=True)

        stored = LogRepository.to_stored_log(record)
        return FullLogResponse(log=LogEntry.model_validate(stored.model_dump(exclude={"archive_key"})), archived=False)

    async def services(
        self,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
    ) -> ServicesResponse:
        return ServicesResponse(services=await self._logs.distinct_services(session))

    async def stats(
        self,
        service_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        start_time: int | None = Query(default=None, ge=0),
        end_time: int | None = Query(default=None, ge=0),
    ) -> ServiceStats:
        """Per-level counts and timestamp bounds for one service."""
        data = await self._logs.stats(service_name, session, start_time, end_time)
        return stats_from_dict(service_name, data)


_instance = LogsRouter()
router = _instance.router
