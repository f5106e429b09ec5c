"""Scheduled analysis of services with elevated error rates."""

import logging

from logcore.analysis.models import AnalysisRequest
from logcore.analysis.requests import AnalysisRequestService
from logcore.config.constants import SCHEDULED_ANALYSIS_MIN_ERRORS, SCHEDULED_ANALYSIS_WINDOW_HOURS
from logcore.db.base import epoch_millis
from logcore.db.enums import QueueKind
from logcore.db.operations import ConfigRepository, LogRepository
from logcore.db.session import DatabaseManager

logger = logging.getLogger(__name__)


class ScheduledAnalysisPlanner:
    """Queues a ``scheduled`` analysis for every service with many recent errors."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        request_service: AnalysisRequestService,
        *,
        window_hours: int = SCHEDULED_ANALYSIS_WINDOW_HOURS,
        min_errors: int = SCHEDULED_ANALYSIS_MIN_ERRORS,
    ) -> None:
        self._db = db_manager
        self._requests = request_service
        self._window_ms = window_hours * 60 * 60 * 1000
        self._min_errors = min_errors
        self._logs = LogRepository()
        self._configs = ConfigRepository()

    async def plan_once(self) -> list[str]:
        """Returns the session ids of the analyses it queued."""
        end_time = epoch_millis()
        start_time = end_time - self._window_ms

        async with self._db.session() as session:
            defaults = await self._configs.get_default_config(session)
            if not defaults.enable_agentic_analysis:
                logger.info("Scheduled analysis is disabled")
                return []
            candidates = await self._logs.error_counts_since(start_time, self._min_errors, session)

        logger.info("Found %d service(s) with errors to analyze", len(candidates))
        session_ids: list[str] = []
        for service_name, error_count in candidates:
            try:
                session_id = await self._requests.enqueue_analysis(
                    AnalysisRequest(service_name=service_name, start_time=start_time, end_time=end_time),
                    kind=QueueKind.SCHEDULED,
                )
            except Exception:
                logger.exception("Failed to queue scheduled analysis for %s", service_name)
                continue
            logger.info("Queued scheduled analysis %s for %s (%d errors)", session_id, service_name, error_count)
            session_ids.append(session_id)
        return session_ids
