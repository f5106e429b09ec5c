"""Analysis workflow: fetch, classify, summarize, and record one session."""

import logging

from analyzer.prompts import (
    NO_LOGS_SUMMARY,
    build_analysis_prompt,
    fallback_result,
    parse_analysis_response,
)
from analyzer.session_actor import SessionActor, SessionActorRegistry
from logcore.analysis.models import AnalysisParams, AnalysisResult, SessionProgress, WorkflowResult
from logcore.config.constants import (
    ANALYSIS_MAX_LOGS,
    ANALYSIS_MAX_TOKENS,
    ANALYSIS_SAMPLE_ERRORS,
    ANALYSIS_SAMPLE_WARNINGS,
)
from logcore.db.enums import LogLevel, SessionStatus
from logcore.db.models.log import LogRecord
from logcore.db.operations import LogRepository
from logcore.db.session import DatabaseManager
from logcore.exceptions import InferenceError, WorkflowError
from logcore.inference.client import InferenceService

logger = logging.getLogger(__name__)

_ERROR_LEVELS = frozenset({LogLevel.ERROR, LogLevel.CRITICAL})


class AnalysisWorkflow:
    """Runs one analysis session from start to a terminal state.

    ``run`` never raises: failures mark the session failed and come back as
    ``WorkflowResult(success=False)``.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        registry: SessionActorRegistry,
        inference: InferenceService,
        *,
        max_logs: int = ANALYSIS_MAX_LOGS,
        log_repository: LogRepository | None = None,
    ) -> None:
        self._db = db_manager
        self._registry = registry
        self._inference = inference
        self._max_logs = max_logs
        self._logs = log_repository or LogRepository()

    async def run(self, params: AnalysisParams) -> WorkflowResult:
        actor = await self._registry.get(params.session_id)
        try:
            result = await self._run_steps(actor, params)
        except Exception as exc:
            logger.exception("Analysis workflow failed for session %s", params.session_id)
            result = WorkflowResult(success=False, session_id=params.session_id, error=str(exc) or type(exc).__name__)
            try:
                await actor.fail(str(exc))
            except Exception:
                logger.exception("Failed to mark session %s as failed", params.session_id)
                return result

        # Terminal sessions never change again, so the actor can be reloaded from storage if needed
        await self._registry.release(params.session_id)
        return result

    async def _run_steps(self, actor: SessionActor, params: AnalysisParams) -> WorkflowResult:
        session = await actor.start(params)
        if session.status == SessionStatus.COMPLETED:
            # Redelivery after the session already finished
            return WorkflowResult(
                success=True,
                session_id=session.id,
                error_count=session.error_count or 0,
                warning_count=session.warning_count or 0,
                info_count=session.info_count or 0,
                summary=session.summary,
                patterns=session.patterns,
                recommendations=session.recommendations,
            )
        if session.status == SessionStatus.FAILED:
            raise WorkflowError(f"Analysis session {session.id} already failed")

        logger.info("Fetching logs for analysis session %s", params.session_id)
        async with self._db.session() as db_session:
            records = await self._logs.search(
                db_session,
                service_name=params.service_name,
                start_time=params.start_time,
                end_time=params.end_time,
                search_term=params.search_term,
                limit=self._max_logs,
            )
        await actor.update(SessionProgress(logs_processed=len(records), current_step="counting_by_level"))

        errors = [r for r in records if r.level in _ERROR_LEVELS]
        warnings = [r for r in records if r.level == LogLevel.WARN]
        info_count = sum(1 for r in records if r.level == LogLevel.INFO)
        await actor.update(
            SessionProgress(
                error_count=len(errors),
                warning_count=len(warnings),
                info_count=info_count,
                current_step="ai_analysis",
            )
        )

        result = await self._analyze(params, records, errors, warnings)
        await actor.complete(result)

        return WorkflowResult(
            success=True,
            session_id=params.session_id,
            error_count=len(errors),
            warning_count=len(warnings),
            info_count=info_count,
            summary=result.summary,
            patterns=result.patterns,
            recommendations=result.recommendations,
        )

    async def _analyze(
        self,
        params: AnalysisParams,
        records: list[LogRecord],
        errors: list[LogRecord],
        warnings: list[LogRecord],
    ) -> AnalysisResult:
        if not records:
            return AnalysisResult(summary=NO_LOGS_SUMMARY)

        sample = [f"[{r.level.value}] {r.message}" for r in errors[:ANALYSIS_SAMPLE_ERRORS]]
        sample += [f"[{r.level.value}] {r.message}" for r in warnings[:ANALYSIS_SAMPLE_WARNINGS]]
        prompt = build_analysis_prompt(
            params.service_name,
            len(records),
            len(errors),
            len(warnings),
            "\n".join(sample),
            params.search_term,
        )

        try:
            text = await self._inference.complete(prompt, ANALYSIS_MAX_TOKENS)
            return parse_analysis_response(text)
        except InferenceError as exc:
            logger.warning("AI analysis unavailable for session %s: %s", params.session_id, exc)
        except Exception:
            logger.exception("Unexpected inference failure for session %s", params.session_id)
        return fallback_result(len(records), len(errors), len(warnings))
