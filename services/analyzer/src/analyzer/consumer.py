"""Analysis queue consumer: one workflow execution per delivered message."""

import asyncio
import logging
from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError

from analyzer.queue_tracking import QueueTracker
from analyzer.workflow import AnalysisWorkflow
from logcore.analysis.models import AnalysisParams
from logcore.db.session import DatabaseManager
from logcore.exceptions import QueueProcessingError, ValidationError
from logcore.queue.broker import QueueDelivery
from logcore.queue.models import AnalysisQueueMessage

logger = logging.getLogger(__name__)


def message_to_params(message: AnalysisQueueMessage) -> AnalysisParams:
    """Raise ValidationError for messages that cannot drive a workflow."""
    if not message.service_name or message.start_time is None or message.end_time is None:
        raise ValidationError(f"{message.kind.value} message {message.id} has no service or time range")
    return AnalysisParams(
        session_id=message.id,
        service_name=message.service_name,
        start_time=message.start_time,
        end_time=message.end_time,
        search_term=message.search_term,
    )


class AnalysisQueueConsumer:
    """Acks messages whose workflow succeeded and retries the rest.

    Invalid messages are marked failed and acked, since redelivering them
    cannot help.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        workflow: AnalysisWorkflow,
        tracker: QueueTracker | None = None,
    ) -> None:
        self._db = db_manager
        self._workflow = workflow
        self._tracker = tracker or QueueTracker()

    async def handle_batch(self, deliveries: Sequence[QueueDelivery]) -> None:
        if not deliveries:
            return
        logger.info("Processing %d analysis queue message(s)", len(deliveries))
        results = await asyncio.gather(*(self.handle_message(d) for d in deliveries), return_exceptions=True)
        for delivery, result in zip(deliveries, results, strict=True):
            if isinstance(result, BaseException):
                logger.error("Unhandled error for message %s: %s", delivery.message_id, result)

    async def handle_message(self, delivery: QueueDelivery) -> None:
        message_id = delivery.message_id
        try:
            message = AnalysisQueueMessage.model_validate(delivery.body)
            params = message_to_params(message)
        except (PydanticValidationError, ValidationError) as exc:
            logger.error("Rejecting analysis message %s: %s", message_id, exc)
            await self._mark_failed(message_id, str(exc))
            await delivery.ack()
            return

        try:
            async with self._db.session() as session:
                await self._tracker.mark_processing(message_id, session)

            result = await self._workflow.run(params)
            if not result.success:
                raise QueueProcessingError(result.error or "Analysis failed")

            async with self._db.session() as session:
                await self._tracker.mark_completed(message_id, session)
            await delivery.ack()
            logger.info("Analysis %s completed successfully", message_id)
        except Exception as exc:
            logger.error("Analysis %s failed (delivery %d): %s", message_id, delivery.attempts, exc)
            await self._mark_failed(message_id, str(exc))
            await delivery.retry(error=str(exc))

    async def _mark_failed(self, message_id: str, error: str) -> None:
        try:
            async with self._db.session() as session:
                await self._tracker.mark_failed(message_id, error, session)
        except Exception:
            logger.exception("Failed to record failure of analysis message %s", message_id)
