"""On-demand analysis endpoints: class-based router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ingest.analysis.schemas import AnalyzeRequest, AnalyzeResponse
from ingest.constants import DEFAULT_SESSION_LIST_LIMIT, Routes
from ingest.dependencies import get_request_service
from logcore.analysis.models import AnalysisSessionView
from logcore.analysis.requests import AnalysisRequestService


class AnalysisRouter:
    """Class-based router for queuing analyses and reading their sessions."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("/analyze", self.analyze, methods=["POST"], response_model=AnalyzeResponse)
        r.add_api_route(
            "/status/{session_id}",
            self.status,
            methods=["GET"],
            response_model=AnalysisSessionView,
        )
        r.add_api_route("/sessions", self.sessions, methods=["GET"], response_model=list[AnalysisSessionView])

    async def analyze(
        self,
        body: AnalyzeRequest,
        service: Annotated[AnalysisRequestService, Depends(get_request_service)],
    ) -> AnalyzeResponse:
        """Queue an analysis. Returns immediately with the session id."""
        session_id = await service.enqueue_analysis(body.to_request())
        return AnalyzeResponse(session_id=session_id, status_url=f"{Routes.ANALYSIS.prefix}/status/{session_id}")

    async def status(
        self,
        session_id: str,
        service: Annotated[AnalysisRequestService, Depends(get_request_service)],
    ) -> AnalysisSessionView:
        return await service.get_session_status(session_id)

    async def sessions(
        self,
        service: Annotated[AnalysisRequestService, Depends(get_request_service)],
        service_name: str | None = None,
        limit: int = Query(default=DEFAULT_SESSION_LIST_LIMIT, ge=1, le=100),
    ) -> list[AnalysisSessionView]:
        """Most recent sessions first."""
        return await service.list_sessions(service_name=service_name, limit=limit)


_instance = AnalysisRouter()
router = _instance.router
