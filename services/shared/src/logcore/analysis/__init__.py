"""Analysis requests and the models shared by the analyzer worker."""

from logcore.analysis.models import (
    AnalysisParams,
    AnalysisRequest,
    AnalysisResult,
    AnalysisSession,
    AnalysisSessionView,
    SessionLiveState,
    SessionProgress,
    SessionStatusView,
    WorkflowResult,
)
from logcore.analysis.requests import AnalysisRequestService, session_row_to_view

__all__ = [
    "AnalysisParams",
    "AnalysisRequest",
    "AnalysisRequestService",
    "AnalysisResult",
    "AnalysisSession",
    "AnalysisSessionView",
    "SessionLiveState",
    "SessionProgress",
    "SessionStatusView",
    "WorkflowResult",
    "session_row_to_view",
]
