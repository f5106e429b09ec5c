"""Analyzer run loop: queue consumption plus the periodic cleanup and analysis jobs."""

import asyncio
import logging
import time

from analyzer.consumer import AnalysisQueueConsumer
from analyzer.global_analysis import GlobalAnalysisJob
from analyzer.scheduler import ScheduledAnalysisPlanner
from analyzer.session_actor import SessionActorRegistry
from analyzer.settings import AnalyzerSettings
from analyzer.workflow import AnalysisWorkflow
from logcore.analysis.requests import AnalysisRequestService
from logcore.archive.adapter import ArchiveStore
from logcore.archive.store import FilesystemObjectStore
from logcore.cleanup import CleanupBatcher
from logcore.db.session import DatabaseManager
from logcore.inference.client import HttpInferenceClient, InferenceService
from logcore.queue.broker import DatabaseAnalysisQueue

logger = logging.getLogger(__name__)


class AnalyzerRunLoop:
    """Polls the analysis queue; runs cleanup, scheduled and global analysis on their intervals."""

    def __init__(
        self,
        settings: AnalyzerSettings,
        db_manager: DatabaseManager,
        *,
        inference: InferenceService | None = None,
        archive: ArchiveStore | None = None,
    ) -> None:
        self._settings = settings
        self._db_manager = db_manager

        inference = inference or HttpInferenceClient(
            settings.INFERENCE_URL,
            model=settings.INFERENCE_MODEL,
            api_token=settings.INFERENCE_API_TOKEN or None,
            max_retries=settings.INFERENCE_MAX_RETRIES,
            request_timeout=settings.INFERENCE_TIMEOUT_SECONDS,
        )
        archive = archive or ArchiveStore(FilesystemObjectStore(settings.ARCHIVE_ROOT))

        self._queue = DatabaseAnalysisQueue(
            db_manager,
            visibility_timeout=settings.QUEUE_VISIBILITY_TIMEOUT_SECONDS,
            max_deliveries=settings.QUEUE_MAX_DELIVERIES,
            retry_base_delay=settings.QUEUE_RETRY_BASE_DELAY_SECONDS,
        )
        self._registry = SessionActorRegistry(db_manager)
        workflow = AnalysisWorkflow(db_manager, self._registry, inference, max_logs=settings.ANALYSIS_MAX_LOGS)
        self._consumer = AnalysisQueueConsumer(db_manager, workflow)
        self._cleanup = CleanupBatcher(db_manager, archive)
        self._planner = ScheduledAnalysisPlanner(db_manager, AnalysisRequestService(db_manager, self._queue))
        self._global_analysis = GlobalAnalysisJob(db_manager, inference)

        self._last_cleanup = time.monotonic()
        self._last_planning = time.monotonic()
        self._last_global_analysis = time.monotonic()

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Main loop: run cycles until shutdown_event is set."""
        logger.info(
            "Analyzer run loop starting (poll=%ds, batch=%d, cleanup every %ds, "
            "scheduled analysis every %ds, global analysis every %ds)",
            self._settings.QUEUE_POLL_INTERVAL_SECONDS,
            self._settings.QUEUE_BATCH_SIZE,
            self._settings.CLEANUP_INTERVAL_SECONDS,
            self._settings.SCHEDULED_ANALYSIS_INTERVAL_SECONDS,
            self._settings.GLOBAL_ANALYSIS_INTERVAL_SECONDS,
        )

        while not shutdown_event.is_set():
            received = 0
            try:
                received = await self._run_cycle()
            except Exception:
                logger.exception("Unhandled error in analyzer cycle")

            # A full batch means more messages are probably waiting
            if received >= self._settings.QUEUE_BATCH_SIZE:
                continue

            # Sleep in small increments so we can respond to shutdown quickly
            for _ in range(self._settings.QUEUE_POLL_INTERVAL_SECONDS):
                if shutdown_event.is_set():
                    break
                await asyncio.sleep(1)

        logger.info("Analyzer run loop shutting down")

    async def _run_cycle(self) -> int:
        """Consume one batch and run any periodic job that is due. Returns messages received."""
        deliveries = await self._queue.receive_batch(self._settings.QUEUE_BATCH_SIZE)
        await self._consumer.handle_batch(deliveries)
        await self._run_periodic_jobs()
        return len(deliveries)

    async def _run_periodic_jobs(self) -> None:
        now = time.monotonic()

        cleanup_interval = self._settings.CLEANUP_INTERVAL_SECONDS
        if cleanup_interval > 0 and now - self._last_cleanup >= cleanup_interval:
            self._last_cleanup = now
            try:
                stats = await self._cleanup.run_once()
                logger.info("Cleanup deleted %d logs across %d services", stats.total_deleted, stats.services_processed)
            except Exception:
                logger.exception("Cleanup job failed")

        planning_interval = self._settings.SCHEDULED_ANALYSIS_INTERVAL_SECONDS
        if planning_interval > 0 and now - self._last_planning >= planning_interval:
            self._last_planning = now
            try:
                queued = await self._planner.plan_once()
                logger.info("Scheduled analysis queued %d session(s)", len(queued))
            except Exception:
                logger.exception("Scheduled analysis job failed")

        global_interval = self._settings.GLOBAL_ANALYSIS_INTERVAL_SECONDS
        if global_interval > 0 and now - self._last_global_analysis >= global_interval:
            self._last_global_analysis = now
            try:
                await self._global_analysis.run_once()
            except Exception:
                logger.exception("Global analysis job failed")
