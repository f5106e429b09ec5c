"""Analysis request, session and result models."""

from datetime import datetime

from pydantic import BaseModel, Field

from logcore.db.enums import AnomalySeverity, SessionStatus


class AnalysisRequest(BaseModel):
    """An analysis request over [start_time, end_time) in epoch millis."""

    service_name: str
    start_time: int
    end_time: int
    search_term: str | None = None


class AnalysisParams(AnalysisRequest):
    """Parameters of one workflow execution."""

    session_id: str


class AnalysisSession(BaseModel):
    """The actor's authoritative copy of a session."""

    id: str
    service_name: str
    start_time: int
    end_time: int
    search_term: str | None = None
    status: SessionStatus = SessionStatus.PENDING
    error_count: int | None = None
    warning_count: int | None = None
    info_count: int | None = None
    summary: str | None = None
    patterns: list[str] | None = None
    recommendations: list[str] | None = None
    created_at: int  # epoch millis
    completed_at: int | None = None


class SessionLiveState(BaseModel):
    """What a session actor persists: the session plus progress bookkeeping."""

    session: AnalysisSession
    logs_processed: int = 0
    current_step: str = "initializing"
    started_at: int


class SessionStatusView(BaseModel):
    session: AnalysisSession
    logs_processed: int
    current_step: str
    running_duration: int  # millis


class SessionProgress(BaseModel):
    """A partial progress update. Fields left as None are not changed."""

    logs_processed: int | None = None
    current_step: str | None = None
    error_count: int | None = None
    warning_count: int | None = None
    info_count: int | None = None


class AnalysisResult(BaseModel):
    summary: str
    patterns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class WorkflowResult(BaseModel):
    success: bool
    session_id: str
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    summary: str | None = None
    patterns: list[str] | None = None
    recommendations: list[str] | None = None
    error: str | None = None


class AnalysisSessionView(BaseModel):
    """A session as reported to callers, read from the metadata store."""

    id: str
    service_name: str
    start_time: int
    end_time: int
    search_term: str | None = None
    status: SessionStatus
    error_count: int | None = None
    warning_count: int | None = None
    info_count: int | None = None
    summary: str | None = None
    patterns: list[str] | None = None
    recommendations: list[str] | None = None
    created_at: datetime
    completed_at: datetime | None = None


class ServiceBreakdown(BaseModel):
    service_name: str
    log_count: int
    error_count: int


class GlobalStats(BaseModel):
    """Counts across every service over [start_time, end_time)."""

    total_logs: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    unique_services: int = 0
    services: list[ServiceBreakdown] = Field(default_factory=list)

    @property
    def error_rate(self) -> float:
        """Percentage of records at ERROR level."""
        return self.total_errors / self.total_logs * 100 if self.total_logs else 0.0


class Anomaly(BaseModel):
    type: str  # error_spike | volume_spike | volume_drop
    service_name: str  # "global" for system-wide anomalies
    severity: AnomalySeverity
    description: str
    value: float
    threshold: float
    detected_at: int  # epoch millis


class GlobalAnalysis(BaseModel):
    """One stored cross-service analysis."""

    id: str
    start_time: int
    end_time: int
    stats: GlobalStats
    anomalies: list[Anomaly] = Field(default_factory=list)
    result: AnalysisResult
