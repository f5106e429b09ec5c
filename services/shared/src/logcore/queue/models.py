"""Analysis queue message body."""

from pydantic import BaseModel, Field

from logcore.db.base import epoch_millis
from logcore.db.enums import QueueKind


class AnalysisQueueMessage(BaseModel):
    """One analysis request. ``id`` doubles as the analysis session id."""

    id: str
    kind: QueueKind = QueueKind.ON_DEMAND
    service_name: str | None = None
    start_time: int | None = None  # epoch millis, inclusive
    end_time: int | None = None  # epoch millis, exclusive
    search_term: str | None = None
    created_at: int = Field(default_factory=epoch_millis)
