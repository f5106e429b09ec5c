"""Accepting analysis requests and reporting their sessions."""

import json
import logging
import re
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from logcore.analysis.models import AnalysisRequest, AnalysisSessionView
from logcore.config.constants import ANALYSIS_MAX_RANGE_DAYS, MS_PER_DAY, SERVICE_NAME_PATTERN
from logcore.db.enums import QueueKind, SessionStatus
from logcore.db.models.analysis import AnalysisQueueEntry, AnalysisSessionRow
from logcore.db.operations import SessionRepository
from logcore.db.session import DatabaseManager
from logcore.exceptions import SessionNotFoundError, ValidationError
from logcore.queue.broker import DatabaseAnalysisQueue
from logcore.queue.models import AnalysisQueueMessage

logger = logging.getLogger(__name__)

_SERVICE_NAME_RE = re.compile(SERVICE_NAME_PATTERN)


def session_row_to_view(row: AnalysisSessionRow) -> AnalysisSessionView:
    return AnalysisSessionView(
        id=row.id,
        service_name=row.service_name,
        start_time=row.start_time,
        end_time=row.end_time,
        search_term=row.search_term,
        status=row.status,
        error_count=row.error_count,
        warning_count=row.warning_count,
        info_count=row.info_count,
        summary=row.summary,
        patterns=json.loads(row.patterns_json) if row.patterns_json else None,
        recommendations=json.loads(row.recommendations_json) if row.recommendations_json else None,
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


class AnalysisRequestService:
    """Turns analysis requests into a tracking row plus a queue message."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        queue: DatabaseAnalysisQueue,
        *,
        max_range_days: int = ANALYSIS_MAX_RANGE_DAYS,
        session_repository: SessionRepository | None = None,
    ) -> None:
        self._db = db_manager
        self._queue = queue
        self._max_range_ms = max_range_days * MS_PER_DAY
        self._max_range_days = max_range_days
        self._sessions = session_repository or SessionRepository()

    def validate(self, request: AnalysisRequest) -> None:
        if not request.service_name or not _SERVICE_NAME_RE.match(request.service_name):
            raise ValidationError("service_name must contain only alphanumeric characters, dashes, and underscores")
        if request.end_time <= request.start_time:
            raise ValidationError("end_time must be after start_time")
        if request.end_time - request.start_time > self._max_range_ms:
            raise ValidationError(f"Time range too large. Maximum allowed is {self._max_range_days} days.")

    async def enqueue_analysis(self, request: AnalysisRequest, kind: QueueKind = QueueKind.ON_DEMAND) -> str:
        """Validate the request, record it as queued and send it. Returns the session id."""
        self.validate(request)
        session_id = str(uuid.uuid4())

        async with self._db.session() as session:
            session.add(
                AnalysisQueueEntry(
                    id=session_id,
                    kind=kind,
                    service_name=request.service_name,
                    start_time=request.start_time,
                    end_time=request.end_time,
                    search_term=request.search_term,
                )
            )

        await self._queue.send(
            AnalysisQueueMessage(
                id=session_id,
                kind=kind,
                service_name=request.service_name,
                start_time=request.start_time,
                end_time=request.end_time,
                search_term=request.search_term,
            )
        )
        logger.info("Analysis %s queued for %s", session_id, request.service_name)
        return session_id

    async def get_session_status(self, session_id: str) -> AnalysisSessionView:
        """Report a session. A request that no worker has started yet reports ``pending``."""
        async with self._db.session() as session:
            row = await self._sessions.get(session_id, session)
            if row is not None:
                return session_row_to_view(row)
            return await self._queued_view(session_id, session)

    async def _queued_view(self, session_id: str, session: AsyncSession) -> AnalysisSessionView:
        entry = await session.get(AnalysisQueueEntry, session_id)
        if entry is None or entry.service_name is None or entry.start_time is None or entry.end_time is None:
            raise SessionNotFoundError(session_id)
        return AnalysisSessionView(
            id=entry.id,
            service_name=entry.service_name,
            start_time=entry.start_time,
            end_time=entry.end_time,
            search_term=entry.search_term,
            status=SessionStatus.PENDING,
            created_at=entry.created_at,
        )

    async def list_sessions(self, service_name: str | None = None, limit: int = 20) -> list[AnalysisSessionView]:
        async with self._db.session() as session:
            rows = await self._sessions.list_recent(session, service_name=service_name, limit=limit)
        return [session_row_to_view(row) for row in rows]
