"""Periodic cross-service analysis: statistics, anomalies and a summary of system health."""

import json
import logging
import uuid

from analyzer.prompts import build_global_analysis_prompt, global_fallback_result, parse_analysis_response
from logcore.analysis.models import AnalysisResult, Anomaly, GlobalAnalysis, GlobalStats, ServiceBreakdown
from logcore.config.constants import (
    GLOBAL_ANALYSIS_BASELINE_DAYS,
    GLOBAL_ANALYSIS_BREAKDOWN_LIMIT,
    GLOBAL_ANALYSIS_FIRST_WINDOW_HOURS,
    GLOBAL_ANALYSIS_JOB_NAME,
    GLOBAL_ANALYSIS_MAX_TOKENS,
    GLOBAL_ANALYSIS_PROMPT_SERVICES,
    MS_PER_DAY,
)
from logcore.db.base import epoch_millis
from logcore.db.enums import AnomalySeverity, JobStatus
from logcore.db.models.operations import GlobalAnalysisRow
from logcore.db.operations import GlobalAnalysisRepository, JobTrackerRepository, LevelTotals, LogRepository
from logcore.db.session import DatabaseManager
from logcore.exceptions import InferenceError
from logcore.inference.client import InferenceService

logger = logging.getLogger(__name__)

GLOBAL_SERVICE = "global"

# Multiples of the baseline expectation that count as anomalous
ERROR_SPIKE_FACTOR = 2.0
ERROR_SPIKE_HIGH_FACTOR = 5.0
VOLUME_SPIKE_FACTOR = 3.0
VOLUME_DROP_FACTOR = 0.3
VOLUME_DROP_MIN_EXPECTED = 100.0

SERVICE_MIN_ERRORS = 10
SERVICE_ERROR_RATE = 50.0
SERVICE_ERROR_RATE_HIGH = 80.0


def detect_anomalies(
    stats: GlobalStats,
    baseline: LevelTotals,
    window_ms: int,
    baseline_ms: int,
    detected_at: int,
) -> list[Anomaly]:
    """Compare a window against the baseline period before it, scaled to the window's length."""
    anomalies: list[Anomaly] = []
    scale = window_ms / baseline_ms if baseline_ms > 0 else 0.0
    expected_logs = baseline.total_logs * scale
    expected_errors = baseline.total_errors * scale

    if expected_errors > 0 and stats.total_errors > expected_errors * ERROR_SPIKE_FACTOR:
        increase = round((stats.total_errors - expected_errors) / expected_errors * 100)
        high = stats.total_errors > expected_errors * ERROR_SPIKE_HIGH_FACTOR
        anomalies.append(
            Anomaly(
                type="error_spike",
                service_name=GLOBAL_SERVICE,
                severity=AnomalySeverity.HIGH if high else AnomalySeverity.MEDIUM,
                description=f"Error count increased by {increase}% compared to the baseline average",
                value=stats.total_errors,
                threshold=expected_errors * ERROR_SPIKE_FACTOR,
                detected_at=detected_at,
            )
        )

    if expected_logs > 0 and stats.total_logs > expected_logs * VOLUME_SPIKE_FACTOR:
        anomalies.append(
            Anomaly(
                type="volume_spike",
                service_name=GLOBAL_SERVICE,
                severity=AnomalySeverity.MEDIUM,
                description="Log volume increased significantly",
                value=stats.total_logs,
                threshold=expected_logs * VOLUME_SPIKE_FACTOR,
                detected_at=detected_at,
            )
        )

    if expected_logs > VOLUME_DROP_MIN_EXPECTED and stats.total_logs < expected_logs * VOLUME_DROP_FACTOR:
        anomalies.append(
            Anomaly(
                type="volume_drop",
                service_name=GLOBAL_SERVICE,
                severity=AnomalySeverity.MEDIUM,
                description="Log volume dropped significantly",
                value=stats.total_logs,
                threshold=expected_logs * VOLUME_DROP_FACTOR,
                detected_at=detected_at,
            )
        )

    for service in stats.services:
        rate = service.error_count / service.log_count * 100 if service.log_count else 0.0
        if service.error_count > SERVICE_MIN_ERRORS and rate > SERVICE_ERROR_RATE:
            anomalies.append(
                Anomaly(
                    type="error_spike",
                    service_name=service.service_name,
                    severity=AnomalySeverity.HIGH if rate > SERVICE_ERROR_RATE_HIGH else AnomalySeverity.MEDIUM,
                    description=f"High error rate ({rate:.1f}%)",
                    value=rate,
                    threshold=SERVICE_ERROR_RATE,
                    detected_at=detected_at,
                )
            )

    return anomalies


class GlobalAnalysisJob:
    """Analyzes every service since the job's last successful run.

    The window is [last success, now); the first run covers the preceding
    ``first_window_hours``. A failed run leaves the window start in place so
    the next run covers the gap.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        inference: InferenceService,
        *,
        job_name: str = GLOBAL_ANALYSIS_JOB_NAME,
        first_window_hours: int = GLOBAL_ANALYSIS_FIRST_WINDOW_HOURS,
        baseline_days: int = GLOBAL_ANALYSIS_BASELINE_DAYS,
    ) -> None:
        self._db = db_manager
        self._inference = inference
        self._job_name = job_name
        self._first_window_ms = first_window_hours * 60 * 60 * 1000
        self._baseline_ms = baseline_days * MS_PER_DAY
        self._logs = LogRepository()
        self._tracker = JobTrackerRepository()
        self._analyses = GlobalAnalysisRepository()

    async def run_once(self) -> GlobalAnalysis:
        end_time = epoch_millis()
        try:
            analysis = await self._analyze(end_time)
        except Exception as exc:
            await self._record_failure(end_time, exc)
            raise
        logger.info(
            "Global analysis %s covered %d logs from %d services (%d anomalies)",
            analysis.id,
            analysis.stats.total_logs,
            analysis.stats.unique_services,
            len(analysis.anomalies),
        )
        return analysis

    async def _analyze(self, end_time: int) -> GlobalAnalysis:
        async with self._db.session() as session:
            tracker = await self._tracker.get(self._job_name, session)
            if tracker is not None and tracker.last_success_at is not None:
                start_time = tracker.last_success_at
            else:
                start_time = end_time - self._first_window_ms

            totals = await self._logs.level_totals(start_time, end_time, session)
            breakdown = await self._logs.service_breakdown(
                start_time, end_time, session, limit=GLOBAL_ANALYSIS_BREAKDOWN_LIMIT
            )
            baseline = await self._logs.level_totals(start_time - self._baseline_ms, start_time, session)

        stats = GlobalStats(
            total_logs=totals.total_logs,
            total_errors=totals.total_errors,
            total_warnings=totals.total_warnings,
            unique_services=totals.unique_services,
            services=[
                ServiceBreakdown(service_name=name, log_count=log_count, error_count=error_count)
                for name, log_count, error_count in breakdown
            ],
        )
        anomalies = detect_anomalies(stats, baseline, end_time - start_time, self._baseline_ms, end_time)
        result = await self._summarize(stats, anomalies)

        analysis = GlobalAnalysis(
            id=str(uuid.uuid4()),
            start_time=start_time,
            end_time=end_time,
            stats=stats,
            anomalies=anomalies,
            result=result,
        )
        async with self._db.session() as session:
            await self._analyses.add(_to_row(analysis), session)
            await self._tracker.record_run(self._job_name, end_time, JobStatus.SUCCESS, session)
        return analysis

    async def _summarize(self, stats: GlobalStats, anomalies: list[Anomaly]) -> AnalysisResult:
        prompt = build_global_analysis_prompt(stats, anomalies, GLOBAL_ANALYSIS_PROMPT_SERVICES)
        try:
            text = await self._inference.complete(prompt, GLOBAL_ANALYSIS_MAX_TOKENS)
            return parse_analysis_response(text)
        except InferenceError as exc:
            logger.warning("AI analysis unavailable for global analysis: %s", exc)
        except Exception:
            logger.exception("Unexpected inference failure for global analysis")
        return global_fallback_result(stats, len(anomalies))

    async def _record_failure(self, run_at: int, exc: Exception) -> None:
        logger.error("Global analysis failed: %s", exc)
        try:
            async with self._db.session() as session:
                await self._tracker.record_run(
                    self._job_name, run_at, JobStatus.FAILED, session, error_message=str(exc) or type(exc).__name__
                )
        except Exception:
            logger.exception("Failed to record global analysis failure")


def _to_row(analysis: GlobalAnalysis) -> GlobalAnalysisRow:
    stats = analysis.stats
    return GlobalAnalysisRow(
        id=analysis.id,
        analysis_period="daily",
        start_time=analysis.start_time,
        end_time=analysis.end_time,
        total_logs=stats.total_logs,
        total_errors=stats.total_errors,
        total_warnings=stats.total_warnings,
        unique_services=stats.unique_services,
        error_rate=stats.error_rate,
        summary=analysis.result.summary,
        patterns_json=json.dumps(analysis.result.patterns),
        anomalies_json=json.dumps([a.model_dump(mode="json") for a in analysis.anomalies]),
        recommendations_json=json.dumps(analysis.result.recommendations),
    )
