"""Request/response schemas for log ingestion and queries."""

from typing import Any

from pydantic import BaseModel, Field

from logcore.models import LogEntry, LogSubmission, StoredLog, TailEvent


class IngestResponse(BaseModel):
    success: bool = True
    id: str


class BatchIngestRequest(BaseModel):
    logs: list[LogSubmission] = Field(default_factory=list)


class BatchIngestResponse(BaseModel):
    success: bool
    successful: int
    failed: int
    errors: list[str] = Field(default_factory=list)


class TailIngestRequest(BaseModel):
    events: list[TailEvent] = Field(default_factory=list)


class LogSearchResponse(BaseModel):
    logs: list[StoredLog]
    count: int
    limit: int
    offset: int


class FullLogResponse(BaseModel):
    """The archived record if available, otherwise the (truncated) metadata copy."""

    log: LogEntry
    archived: bool


class ServicesResponse(BaseModel):
    services: list[str]


class ServiceStats(BaseModel):
    service_name: str
    total: int
    by_level: dict[str, int]
    oldest_timestamp: int | None = None
    newest_timestamp: int | None = None


def stats_from_dict(service_name: str, data: dict[str, Any]) -> ServiceStats:
    return ServiceStats(service_name=service_name, **data)
