"""Request/response schemas for on-demand analysis."""

from datetime import UTC, datetime

from pydantic import BaseModel

from logcore.analysis.models import AnalysisRequest


def to_epoch_millis(value: datetime) -> int:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


class AnalyzeRequest(BaseModel):
    """Analysis over [start_time, end_time), given as ISO 8601 datetimes."""

    service_name: str
    start_time: datetime
    end_time: datetime
    search_term: str | None = None

    def to_request(self) -> AnalysisRequest:
        return AnalysisRequest(
            service_name=self.service_name,
            start_time=to_epoch_millis(self.start_time),
            end_time=to_epoch_millis(self.end_time),
            search_term=self.search_term or None,
        )


class AnalyzeResponse(BaseModel):
    success: bool = True
    session_id: str
    message: str = "Analysis queued successfully"
    status_url: str
