"""Database enums for the log pipeline models."""

import enum


class LogLevel(enum.StrEnum):
    """Canonical log levels after normalization."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogSource(enum.StrEnum):
    """Where a log record entered the pipeline."""

    HTTP = "http"
    TAIL = "tail"
    AGENT = "agent"


class RetentionPolicy(enum.StrEnum):
    """Retention class of a service."""

    STANDARD = "standard"
    EXTENDED = "extended"
    MINIMAL = "minimal"


class SessionStatus(enum.StrEnum):
    """Analysis session lifecycle."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


class QueueKind(enum.StrEnum):
    """Kinds of analysis requests."""

    ON_DEMAND = "on_demand"
    SCHEDULED = "scheduled"
    GLOBAL = "global"


class TrackingStatus(enum.StrEnum):
    """Processing status of an analysis queue message."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class MessageStatus(enum.StrEnum):
    """Broker-side status of a stored queue message."""

    PENDING = "pending"
    DEAD_LETTER = "dead_letter"


class JobStatus(enum.StrEnum):
    """Outcome of the last run of a periodic job."""

    SUCCESS = "success"
    FAILED = "failed"


class AnomalySeverity(enum.StrEnum):
    MEDIUM = "medium"
    HIGH = "high"
