"""Ingestion coordinator: the dual-store write path.

The metadata row is written before ``ingest`` returns. The archive copy is
written by a detached task afterwards; if that fails the record simply keeps
a null ``archive_key``.
"""

import asyncio
import logging
import uuid
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from logcore.archive.adapter import ArchiveStore
from logcore.db.base import epoch_millis
from logcore.db.enums import LogLevel
from logcore.db.operations import LogRepository
from logcore.db.session import DatabaseManager
from logcore.exceptions import StoreError
from logcore.ingestion.tail import tail_event_to_submissions
from logcore.ingestion.validation import normalize_level, validate_submission
from logcore.models import BatchIngestResult, LogEntry, LogSubmission, TailEvent

logger = logging.getLogger(__name__)


class IngestionCoordinator:
    """Validates log submissions and writes them to both stores."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        archive: ArchiveStore,
        log_repository: LogRepository | None = None,
    ) -> None:
        self._db = db_manager
        self._archive = archive
        self._logs = log_repository or LogRepository()
        self._archive_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_archive_writes(self) -> int:
        return len(self._archive_tasks)

    async def ingest(self, submission: LogSubmission) -> str:
        """Validate and store one log event, returning its id.

        Raises ``ValidationError`` for malformed input and ``StoreError`` if
        the metadata write fails.
        """
        validate_submission(submission)
        entry = LogEntry(
            id=submission.id or str(uuid.uuid4()),
            service_name=submission.service_name or "",
            level=LogLevel(normalize_level(submission.level or "")),
            message=submission.message or "",
            timestamp=submission.timestamp if submission.timestamp is not None else epoch_millis(),
            metadata=submission.metadata or {},
            source=submission.source,
        )

        try:
            async with self._db.session() as session:
                await self._logs.insert(entry, session)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to store log {entry.id}: {exc}") from exc

        task = asyncio.create_task(self._archive_entry(entry))
        self._archive_tasks.add(task)
        task.add_done_callback(self._archive_tasks.discard)
        return entry.id

    async def _archive_entry(self, entry: LogEntry) -> None:
        try:
            key = await self._archive.put(entry)
            async with self._db.session() as session:
                await self._logs.set_archive_key(entry.id, key, session)
        except Exception:
            logger.exception("Archive write failed for log %s; archive_key left empty", entry.id)

    async def batch_ingest(self, submissions: Sequence[LogSubmission]) -> BatchIngestResult:
        """Ingest every submission concurrently. One failure never aborts the others."""
        results = await asyncio.gather(*(self.ingest(s) for s in submissions), return_exceptions=True)

        outcome = BatchIngestResult()
        for result in results:
            if isinstance(result, BaseException):
                outcome.failed += 1
                outcome.errors.append(str(result) or type(result).__name__)
            else:
                outcome.successful += 1
        if outcome.failed:
            logger.info("Batch ingest: %d stored, %d rejected", outcome.successful, outcome.failed)
        return outcome

    async def ingest_tail_events(self, events: Sequence[TailEvent]) -> BatchIngestResult:
        """Ingest the console lines and exceptions captured in producer trace events."""
        submissions = [s for event in events for s in tail_event_to_submissions(event)]
        if not submissions:
            return BatchIngestResult()
        outcome = await self.batch_ingest(submissions)
        for error in outcome.errors:
            logger.warning("Failed to ingest tail log: %s", error)
        return outcome

    async def drain(self) -> None:
        """Wait for all in-flight archive writes to finish."""
        while self._archive_tasks:
            await asyncio.gather(*list(self._archive_tasks), return_exceptions=True)
