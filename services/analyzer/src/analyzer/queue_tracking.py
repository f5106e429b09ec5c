"""Tracking-row lifecycle for analysis queue messages."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from logcore.db.base import utc_now
from logcore.db.enums import TrackingStatus
from logcore.db.models.analysis import AnalysisQueueEntry

logger = logging.getLogger(__name__)

_ERROR_MESSAGE_MAX_CHARS = 1000


class QueueTracker:
    """Manages AnalysisQueueEntry rows for consumed messages.

    A message without a tracking row is still processed; the tracker just
    logs that there was nothing to update.
    """

    async def mark_processing(self, entry_id: str, session: AsyncSession) -> AnalysisQueueEntry | None:
        """Set status=processing and record when processing started."""
        entry = await session.get(AnalysisQueueEntry, entry_id)
        if entry is None:
            logger.warning("No tracking row for analysis message %s", entry_id)
            return None
        entry.status = TrackingStatus.PROCESSING
        entry.started_at = utc_now()
        await session.flush()
        logger.info("Processing analysis message %s (previous failures: %d)", entry_id, entry.retry_count)
        return entry

    async def mark_completed(self, entry_id: str, session: AsyncSession) -> None:
        entry = await session.get(AnalysisQueueEntry, entry_id)
        if entry is None:
            return
        entry.status = TrackingStatus.COMPLETED
        entry.completed_at = utc_now()
        entry.error_message = None
        await session.flush()
        logger.info("Analysis message %s completed", entry_id)

    async def mark_failed(self, entry_id: str, error_message: str, session: AsyncSession) -> None:
        """Set status=failed, bump retry_count and record the error text."""
        entry = await session.get(AnalysisQueueEntry, entry_id)
        if entry is None:
            return
        entry.status = TrackingStatus.FAILED
        entry.retry_count += 1
        entry.completed_at = utc_now()
        entry.error_message = error_message[:_ERROR_MESSAGE_MAX_CHARS]
        await session.flush()
        logger.error("Analysis message %s failed: %s", entry_id, error_message)
