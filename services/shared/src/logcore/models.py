"""Pydantic models for log submissions, stored records and configuration.

These are pure data models. Submissions are deliberately permissive: the
validator decides what is acceptable so that every rejection surfaces as a
``ValidationError`` with a readable message.
"""

from typing import Any

from pydantic import BaseModel, Field

from logcore.config.constants import (
    DEFAULT_CLEANUP_BATCH_SIZE,
    DEFAULT_ENABLE_AGENTIC_ANALYSIS,
    DEFAULT_RETENTION_POLICY,
    DEFAULT_TTL_DAYS,
)
from logcore.db.enums import LogLevel, LogSource, RetentionPolicy

# ---------------------------------------------------------------------------
# Log records
# ---------------------------------------------------------------------------


class LogSubmission(BaseModel):
    """A raw log event as submitted by a producer."""

    id: str | None = None
    service_name: str | None = None
    level: str | None = None
    message: str | None = None
    timestamp: int | None = None  # epoch millis
    metadata: dict[str, Any] | None = None
    source: LogSource = LogSource.HTTP


class LogEntry(BaseModel):
    """A validated, normalized log event. This is what the archive stores."""

    id: str
    service_name: str
    level: LogLevel
    message: str
    timestamp: int
    metadata: dict[str, Any] = Field(default_factory=dict)
    source: LogSource = LogSource.HTTP


class StoredLog(LogEntry):
    """A log event as read back from the metadata store."""

    archive_key: str | None = None


class BatchIngestResult(BaseModel):
    """Per-batch outcome of concurrent ingestion."""

    successful: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Tail events (producer trace items)
# ---------------------------------------------------------------------------


class TailLogLine(BaseModel):
    """A console line captured from a producer invocation."""

    level: str = "log"
    message: list[Any] = Field(default_factory=list)
    timestamp: int


class TailException(BaseModel):
    """An uncaught exception captured from a producer invocation."""

    name: str
    message: str
    timestamp: int
    stack: str | None = None


class TailEvent(BaseModel):
    """One producer invocation with its captured logs and exceptions."""

    script_name: str | None = None
    outcome: str | None = None
    event_timestamp: int | None = None
    logs: list[TailLogLine] = Field(default_factory=list)
    exceptions: list[TailException] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class DefaultConfig(BaseModel):
    """Global defaults applied to services without an explicit config."""

    default_ttl_days: int = DEFAULT_TTL_DAYS
    default_retention_policy: RetentionPolicy = RetentionPolicy(DEFAULT_RETENTION_POLICY)
    cleanup_batch_size: int = DEFAULT_CLEANUP_BATCH_SIZE
    enable_agentic_analysis: bool = DEFAULT_ENABLE_AGENTIC_ANALYSIS


class ServiceConfigUpdate(BaseModel):
    """Partial update of a service config. Unset fields are left untouched."""

    ttl_days: int | None = Field(default=None, ge=0)
    retention_policy: RetentionPolicy | None = None
    alert_on_errors: bool | None = None
    max_logs_per_day: int | None = Field(default=None, ge=0)


class EffectiveServiceConfig(BaseModel):
    """A service's config, or the defaults if it was never configured."""

    service_name: str
    ttl_days: int
    retention_policy: RetentionPolicy
    alert_on_errors: bool = False
    max_logs_per_day: int | None = None
    is_default: bool = False
