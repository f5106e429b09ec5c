"""Analysis message queue."""

from logcore.queue.broker import DatabaseAnalysisQueue, QueueDelivery
from logcore.queue.models import AnalysisQueueMessage

__all__ = ["AnalysisQueueMessage", "DatabaseAnalysisQueue", "QueueDelivery"]
