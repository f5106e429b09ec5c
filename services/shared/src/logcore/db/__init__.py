"""Shared database package -- convenience re-exports.

Importing this module registers all models with Base.metadata.
"""

from logcore.db.base import Base
from logcore.db.enums import (
    AnomalySeverity,
    JobStatus,
    LogLevel,
    LogSource,
    MessageStatus,
    QueueKind,
    RetentionPolicy,
    SessionStatus,
    TrackingStatus,
)
from logcore.db.models import (
    ActorStateRow,
    AnalysisQueueEntry,
    AnalysisSessionRow,
    DefaultConfigEntry,
    GlobalAnalysisRow,
    JobTrackerRow,
    LogRecord,
    QueueMessageRow,
    ServiceConfig,
)
from logcore.db.session import DatabaseManager

__all__ = [
    # Base
    "Base",
    # Enums
    "AnomalySeverity",
    "JobStatus",
    "LogLevel",
    "LogSource",
    "MessageStatus",
    "QueueKind",
    "RetentionPolicy",
    "SessionStatus",
    "TrackingStatus",
    # Models
    "ActorStateRow",
    "AnalysisQueueEntry",
    "AnalysisSessionRow",
    "DefaultConfigEntry",
    "GlobalAnalysisRow",
    "JobTrackerRow",
    "LogRecord",
    "QueueMessageRow",
    "ServiceConfig",
    # Session
    "DatabaseManager",
]
