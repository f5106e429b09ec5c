"""Single-writer state machine for one analysis session.

Every mutation of a session goes through its ``SessionActor``, and the
registry hands out exactly one actor per session id within the process. The
actor's own storage holds the authoritative live copy; the
``analysis_sessions`` row is a mirror for queries.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy import update

from analyzer.actor_storage import ActorStorage, DatabaseActorStorage
from logcore.analysis.models import (
    AnalysisParams,
    AnalysisResult,
    AnalysisSession,
    SessionLiveState,
    SessionProgress,
    SessionStatusView,
)
from logcore.db.base import epoch_millis
from logcore.db.enums import SessionStatus
from logcore.db.models.analysis import AnalysisSessionRow
from logcore.db.session import DatabaseManager
from logcore.exceptions import SessionNotFoundError, SessionStateError

logger = logging.getLogger(__name__)

STATE_KEY = "analysis_state"


def _millis_to_datetime(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC).replace(tzinfo=None)


def _terminal_values(session: AnalysisSession) -> dict[str, object]:
    """Mirror columns of a finished session. Rewriting them is idempotent."""
    values: dict[str, object] = {
        "status": session.status,
        "completed_at": _millis_to_datetime(session.completed_at),
    }
    if session.status == SessionStatus.COMPLETED:
        values.update(
            error_count=session.error_count or 0,
            warning_count=session.warning_count or 0,
            info_count=session.info_count or 0,
            summary=session.summary,
            patterns_json=json.dumps(session.patterns or []),
            recommendations_json=json.dumps(session.recommendations or []),
        )
    return values


class SessionActor:
    """Owns the live state of one analysis session.

    Operations are serialized by an ``asyncio.Lock`` and are safe to replay:
    repeating a step that already took effect leaves the session unchanged.
    """

    def __init__(self, session_id: str, storage: ActorStorage, db_manager: DatabaseManager) -> None:
        self.session_id = session_id
        self._storage = storage
        self._db = db_manager
        self._lock = asyncio.Lock()
        self._state: SessionLiveState | None = None

    async def _load(self) -> SessionLiveState | None:
        if self._state is None:
            raw = await self._storage.get(STATE_KEY)
            if raw is not None:
                self._state = SessionLiveState.model_validate(raw)
        return self._state

    async def _require(self) -> SessionLiveState:
        state = await self._load()
        if state is None:
            raise SessionNotFoundError(self.session_id)
        return state

    async def _save(self, state: SessionLiveState) -> None:
        try:
            await self._storage.put(STATE_KEY, state.model_dump(mode="json"))
        except Exception:
            # Drop the in-memory copy so the next operation reloads what was persisted
            self._state = None
            raise
        self._state = state

    async def start(self, params: AnalysisParams) -> AnalysisSession:
        """Create the session as running, or return it unchanged if it already exists."""
        async with self._lock:
            state = await self._load()
            if state is None:
                now = epoch_millis()
                session = AnalysisSession(
                    id=self.session_id,
                    service_name=params.service_name,
                    start_time=params.start_time,
                    end_time=params.end_time,
                    search_term=params.search_term,
                    status=SessionStatus.RUNNING,
                    created_at=now,
                )
                state = SessionLiveState(session=session, started_at=now)
                await self._save(state)
                logger.info("Started analysis session %s for %s", self.session_id, params.service_name)
            elif state.session.status.is_terminal:
                logger.info("Analysis session %s already %s", self.session_id, state.session.status)
                await self._write_mirror(state.session, _terminal_values(state.session))
                return state.session.model_copy()
            else:
                logger.info("Analysis session %s already started (%s)", self.session_id, state.session.status)

            await self._ensure_mirror(state.session)
            return state.session.model_copy()

    async def _ensure_mirror(self, session: AnalysisSession) -> None:
        async with self._db.session() as db_session:
            if await db_session.get(AnalysisSessionRow, session.id) is not None:
                return
            db_session.add(
                AnalysisSessionRow(
                    id=session.id,
                    service_name=session.service_name,
                    start_time=session.start_time,
                    end_time=session.end_time,
                    search_term=session.search_term,
                    status=session.status,
                    error_count=session.error_count,
                    warning_count=session.warning_count,
                    info_count=session.info_count,
                    created_at=_millis_to_datetime(session.created_at),
                    completed_at=_millis_to_datetime(session.completed_at),
                )
            )

    async def status(self) -> SessionStatusView:
        async with self._lock:
            state = await self._require()
            return SessionStatusView(
                session=state.session.model_copy(),
                logs_processed=state.logs_processed,
                current_step=state.current_step,
                running_duration=epoch_millis() - state.started_at,
            )

    async def update(self, progress: SessionProgress) -> None:
        """Merge progress into the live copy. The mirror row is not touched."""
        async with self._lock:
            state = await self._require()
            if state.session.status.is_terminal:
                logger.info("Ignoring update for %s session %s", state.session.status, self.session_id)
                return

            if progress.logs_processed is not None:
                state.logs_processed = progress.logs_processed
            if progress.current_step:
                state.current_step = progress.current_step
            if progress.error_count is not None:
                state.session.error_count = progress.error_count
            if progress.warning_count is not None:
                state.session.warning_count = progress.warning_count
            if progress.info_count is not None:
                state.session.info_count = progress.info_count
            await self._save(state)

    async def complete(self, result: AnalysisResult) -> AnalysisSession:
        async with self._lock:
            state = await self._require()
            session = state.session
            if session.status == SessionStatus.COMPLETED:
                await self._write_mirror(session, _terminal_values(session))
                return session.model_copy()
            if session.status == SessionStatus.FAILED:
                raise SessionStateError(self.session_id, session.status, "complete")

            session.status = SessionStatus.COMPLETED
            session.completed_at = epoch_millis()
            session.summary = result.summary
            session.patterns = list(result.patterns)
            session.recommendations = list(result.recommendations)
            state.current_step = "completed"
            await self._save(state)

            await self._write_mirror(session, _terminal_values(session))
            logger.info("Completed analysis session %s", self.session_id)
            return session.model_copy()

    async def fail(self, error: str) -> None:
        """Mark the session failed. The error text is logged, not stored on the session."""
        async with self._lock:
            state = await self._require()
            session = state.session
            if session.status.is_terminal:
                logger.info("Ignoring fail for %s session %s; re-syncing its mirror", session.status, self.session_id)
                await self._write_mirror(session, _terminal_values(session))
                return

            session.status = SessionStatus.FAILED
            session.completed_at = epoch_millis()
            state.current_step = "failed"
            await self._save(state)

            await self._write_mirror(session, _terminal_values(session))
            logger.error("Analysis session %s failed: %s", self.session_id, error)

    async def _write_mirror(self, session: AnalysisSession, values: dict[str, object]) -> None:
        async with self._db.session() as db_session:
            result = await db_session.execute(
                update(AnalysisSessionRow).where(AnalysisSessionRow.id == session.id).values(**values)
            )
            updated: int = result.rowcount  # type: ignore[attr-defined]
        if updated == 0:
            await self._ensure_mirror(session)
            async with self._db.session() as db_session:
                await db_session.execute(
                    update(AnalysisSessionRow).where(AnalysisSessionRow.id == session.id).values(**values)
                )


class SessionActorRegistry:
    """Hands out the one in-process actor for each session id."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        storage_factory: Callable[[str], ActorStorage] | None = None,
    ) -> None:
        self._db = db_manager
        self._storage_factory = storage_factory or (lambda actor_id: DatabaseActorStorage(db_manager, actor_id))
        self._actors: dict[str, SessionActor] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> SessionActor:
        async with self._lock:
            actor = self._actors.get(session_id)
            if actor is None:
                actor = SessionActor(session_id, self._storage_factory(session_id), self._db)
                self._actors[session_id] = actor
            return actor

    async def release(self, session_id: str) -> None:
        """Forget an actor. Its state stays in storage and is reloaded on the next ``get``."""
        async with self._lock:
            self._actors.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._actors)
