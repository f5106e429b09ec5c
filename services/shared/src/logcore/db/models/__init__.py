"""Re-export all model classes."""

from logcore.db.models.analysis import ActorStateRow, AnalysisQueueEntry, AnalysisSessionRow, QueueMessageRow
from logcore.db.models.config import DefaultConfigEntry, ServiceConfig
from logcore.db.models.log import LogRecord
from logcore.db.models.operations import GlobalAnalysisRow, JobTrackerRow

__all__ = [
    "ActorStateRow",
    "AnalysisQueueEntry",
    "AnalysisSessionRow",
    "DefaultConfigEntry",
    "GlobalAnalysisRow",
    "JobTrackerRow",
    "LogRecord",
    "QueueMessageRow",
    "ServiceConfig",
]
