"""At-least-once message queue stored in the metadata database.

The ingest API sends messages and the analyzer worker receives them, so the
queue lives in the one store both processes share. A received message stays
invisible for the visibility timeout; if the consumer dies before ``ack`` or
``retry`` it becomes visible again and is redelivered.
"""

import json
import logging
import uuid
from typing import Any

from sqlalchemy import delete, select, update

from logcore.config.constants import (
    ANALYSIS_QUEUE_MAX_DELIVERIES,
    ANALYSIS_QUEUE_NAME,
    ANALYSIS_QUEUE_RETRY_BASE_DELAY_SECONDS,
    ANALYSIS_QUEUE_VISIBILITY_TIMEOUT_SECONDS,
)
from logcore.db.base import epoch_millis
from logcore.db.enums import MessageStatus
from logcore.db.models.analysis import QueueMessageRow
from logcore.db.session import DatabaseManager
from logcore.queue.models import AnalysisQueueMessage

logger = logging.getLogger(__name__)


class QueueDelivery:
    """One received message. Settle it with exactly one of ``ack`` or ``retry``."""

    def __init__(self, queue: "DatabaseAnalysisQueue", message_id: str, body: dict[str, Any], attempts: int) -> None:
        self._queue = queue
        self.message_id = message_id
        self.body = body
        self.attempts = attempts
        self.settled = False

    async def ack(self) -> None:
        if self.settled:
            return
        await self._queue._ack(self.message_id)
        self.settled = True

    async def retry(self, delay_seconds: float | None = None, error: str | None = None) -> None:
        if self.settled:
            return
        await self._queue._retry(self.message_id, self.attempts, delay_seconds, error)
        self.settled = True


class DatabaseAnalysisQueue:
    """Analysis queue backed by the ``queue_messages`` table."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        *,
        queue_name: str = ANALYSIS_QUEUE_NAME,
        visibility_timeout: float = ANALYSIS_QUEUE_VISIBILITY_TIMEOUT_SECONDS,
        max_deliveries: int = ANALYSIS_QUEUE_MAX_DELIVERIES,
        retry_base_delay: float = ANALYSIS_QUEUE_RETRY_BASE_DELAY_SECONDS,
    ) -> None:
        self._db = db_manager
        self._queue_name = queue_name
        self._visibility_timeout_ms = int(visibility_timeout * 1000)
        self._max_deliveries = max_deliveries
        self._retry_base_delay = retry_base_delay

    @property
    def max_deliveries(self) -> int:
        return self._max_deliveries

    async def send(self, message: AnalysisQueueMessage) -> None:
        async with self._db.session() as session:
            session.add(
                QueueMessageRow(
                    id=message.id or str(uuid.uuid4()),
                    queue_name=self._queue_name,
                    body=message.model_dump_json(),
                    status=MessageStatus.PENDING,
                    deliveries=0,
                    visible_at=epoch_millis(),
                )
            )
        logger.info("Queued %s analysis message %s", message.kind.value, message.id)

    async def receive_batch(self, max_messages: int) -> list[QueueDelivery]:
        """Claim up to ``max_messages`` visible messages, oldest first."""
        now = epoch_millis()
        async with self._db.session() as session:
            result = await session.execute(
                select(QueueMessageRow.id)
                .where(
                    QueueMessageRow.queue_name == self._queue_name,
                    QueueMessageRow.status == MessageStatus.PENDING,
                    QueueMessageRow.visible_at <= now,
                )
                .order_by(QueueMessageRow.visible_at, QueueMessageRow.created_at)
                .limit(max_messages)
            )
            candidate_ids = list(result.scalars().all())

        deliveries: list[QueueDelivery] = []
        for message_id in candidate_ids:
            # Conditional update so two consumers never claim the same message
            async with self._db.session() as session:
                result = await session.execute(
                    update(QueueMessageRow)
                    .where(
                        QueueMessageRow.id == message_id,
                        QueueMessageRow.status == MessageStatus.PENDING,
                        QueueMessageRow.visible_at <= now,
                    )
                    .values(
                        deliveries=QueueMessageRow.deliveries + 1,
                        visible_at=now + self._visibility_timeout_ms,
                    )
                    .returning(QueueMessageRow.body, QueueMessageRow.deliveries)
                )
                claimed = result.one_or_none()
            if claimed is None:
                continue
            deliveries.append(QueueDelivery(self, message_id, json.loads(claimed.body), claimed.deliveries))

        return deliveries

    async def _ack(self, message_id: str) -> None:
        async with self._db.session() as session:
            await session.execute(delete(QueueMessageRow).where(QueueMessageRow.id == message_id))

    async def _retry(self, message_id: str, attempts: int, delay_seconds: float | None, error: str | None) -> None:
        async with self._db.session() as session:
            if attempts >= self._max_deliveries:
                await session.execute(
                    update(QueueMessageRow)
                    .where(QueueMessageRow.id == message_id)
                    .values(status=MessageStatus.DEAD_LETTER, last_error=error)
                )
                logger.error("Message %s dead-lettered after %d deliveries", message_id, attempts)
                return

            if delay_seconds is None:
                delay_seconds = self._retry_base_delay * (2 ** (attempts - 1))
            await session.execute(
                update(QueueMessageRow)
                .where(QueueMessageRow.id == message_id)
                .values(visible_at=epoch_millis() + int(delay_seconds * 1000), last_error=error)
            )
        logger.warning("Message %s scheduled for redelivery in %.0fs", message_id, delay_seconds)

    async def dead_letters(self, limit: int = 100) -> list[QueueMessageRow]:
        async with self._db.session() as session:
            result = await session.execute(
                select(QueueMessageRow)
                .where(
                    QueueMessageRow.queue_name == self._queue_name,
                    QueueMessageRow.status == MessageStatus.DEAD_LETTER,
                )
                .order_by(QueueMessageRow.created_at)
                .limit(limit)
            )
            return list(result.scalars().all())
