"""Tests for GlobalAnalysisJob and anomaly detection."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from analyzer.global_analysis import GlobalAnalysisJob, detect_anomalies
from logcore.analysis.models import GlobalStats, ServiceBreakdown
from logcore.config.constants import GLOBAL_ANALYSIS_JOB_NAME, MS_PER_DAY
from logcore.db.enums import AnomalySeverity, JobStatus, LogLevel
from logcore.db.models.operations import GlobalAnalysisRow, JobTrackerRow
from logcore.db.operations import GlobalAnalysisRepository, LevelTotals
from logcore.db.session import DatabaseManager
from logcore.exceptions import InferenceError

# Matches the seed_logs default window
WINDOW_START = 1_700_000_000_000
NOW = WINDOW_START + 60 * 60 * 1000


@pytest.fixture
def job(db_manager: DatabaseManager, inference: AsyncMock) -> GlobalAnalysisJob:
    return GlobalAnalysisJob(db_manager, inference)


@pytest.fixture
async def seeded(seed_logs) -> None:  # type: ignore[no-untyped-def]
    """8 logs from 2 services in the hour before NOW; 4 of them errors."""
    await seed_logs("svc-a", LogLevel.ERROR, 3)
    await seed_logs("svc-a", LogLevel.CRITICAL, 1)
    await seed_logs("svc-b", LogLevel.WARN, 2)
    await seed_logs("svc-b", LogLevel.INFO, 2)


async def _run(job: GlobalAnalysisJob, now: int = NOW):  # type: ignore[no-untyped-def]
    with patch("analyzer.global_analysis.epoch_millis", return_value=now):
        return await job.run_once()


async def _tracker(db_manager: DatabaseManager) -> JobTrackerRow | None:
    async with db_manager.session() as session:
        return await session.get(JobTrackerRow, GLOBAL_ANALYSIS_JOB_NAME)


@pytest.mark.usefixtures("seeded")
async def test_first_run_covers_preceding_day(
    db_manager: DatabaseManager, job: GlobalAnalysisJob, inference: AsyncMock
) -> None:
    """With no tracker row the window is the 24 hours before now."""
    analysis = await _run(job)

    assert analysis.start_time == NOW - MS_PER_DAY
    assert analysis.end_time == NOW
    assert analysis.stats.total_logs == 8
    assert analysis.stats.total_errors == 4
    assert analysis.stats.total_warnings == 2
    assert analysis.stats.unique_services == 2
    assert analysis.stats.error_rate == 50.0
    assert [s.service_name for s in analysis.stats.services] == ["svc-a", "svc-b"]
    assert analysis.result.summary == "Upstream timeouts dominate."

    prompt = inference.complete.await_args.args[0]
    assert "Total Logs: 8" in prompt
    assert "svc-a: 4 errors (4 logs)" in prompt

    async with db_manager.session() as session:
        row = await session.get(GlobalAnalysisRow, analysis.id)
    assert row is not None
    assert row.total_errors == 4
    assert row.error_rate == 50.0
    assert json.loads(row.patterns_json or "[]") == ["upstream timeout"]
    assert json.loads(row.anomalies_json or "[]") == []

    tracker = await _tracker(db_manager)
    assert tracker is not None
    assert tracker.last_run_status == JobStatus.SUCCESS
    assert tracker.last_success_at == NOW
    assert tracker.run_count == 1


async def test_next_run_starts_at_last_success(
    db_manager: DatabaseManager,
    job: GlobalAnalysisJob,
    seed_logs,  # type: ignore[no-untyped-def]
) -> None:
    await _run(job)
    await seed_logs("svc-c", LogLevel.ERROR, 2, timestamp=NOW + 1000)

    later = NOW + 60 * 60 * 1000
    analysis = await _run(job, now=later)

    assert analysis.start_time == NOW
    assert analysis.stats.total_logs == 2
    assert analysis.stats.unique_services == 1
    tracker = await _tracker(db_manager)
    assert tracker is not None
    assert tracker.run_count == 2
    assert tracker.last_success_at == later


@pytest.mark.usefixtures("seeded")
async def test_inference_failure_uses_count_summary(job: GlobalAnalysisJob, inference: AsyncMock) -> None:
    inference.complete.side_effect = InferenceError("unavailable")

    analysis = await _run(job)

    assert analysis.result.summary == "Daily analysis: 8 logs from 2 services. Error rate: 50.00%"
    assert analysis.result.patterns == ["0 anomalies detected"]
    assert analysis.result.recommendations == ["Manual review recommended"]


@pytest.mark.usefixtures("seeded")
async def test_unexpected_inference_exception_uses_count_summary(
    job: GlobalAnalysisJob, inference: AsyncMock
) -> None:
    inference.complete.side_effect = ValueError("Invalid date value")

    analysis = await _run(job)

    assert analysis.result.summary.startswith("Daily analysis: 8 logs")


async def test_empty_window(job: GlobalAnalysisJob) -> None:
    analysis = await _run(job)

    assert analysis.stats.total_logs == 0
    assert analysis.stats.error_rate == 0.0
    assert analysis.stats.services == []


async def test_failed_run_keeps_window_start(db_manager: DatabaseManager, job: GlobalAnalysisJob) -> None:
    """A failed run is recorded but the next run still starts at the last success."""
    await _run(job)

    failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
    with patch.object(GlobalAnalysisRepository, "add", AsyncMock(side_effect=failure)):
        with pytest.raises(OperationalError):
            await _run(job, now=NOW + 1000)

    tracker = await _tracker(db_manager)
    assert tracker is not None
    assert tracker.last_run_status == JobStatus.FAILED
    assert tracker.last_run_at == NOW + 1000
    assert tracker.last_success_at == NOW
    assert tracker.error_message
    assert tracker.run_count == 2

    analysis = await _run(job, now=NOW + 2000)
    assert analysis.start_time == NOW


def _stats(total_logs: int, total_errors: int, services: list[ServiceBreakdown] | None = None) -> GlobalStats:
    return GlobalStats(
        total_logs=total_logs,
        total_errors=total_errors,
        unique_services=len(services or []),
        services=services or [],
    )


def test_no_baseline_no_global_anomalies() -> None:
    anomalies = detect_anomalies(_stats(500, 100), LevelTotals(0, 0, 0, 0), MS_PER_DAY, 7 * MS_PER_DAY, NOW)

    assert anomalies == []


def test_error_spike_against_scaled_baseline() -> None:
    """A week with 70 errors expects 10 per day; 60 is a high-severity spike."""
    baseline = LevelTotals(total_logs=7000, total_errors=70, total_warnings=0, unique_services=3)

    (anomaly,) = detect_anomalies(_stats(1000, 60), baseline, MS_PER_DAY, 7 * MS_PER_DAY, NOW)

    assert anomaly.type == "error_spike"
    assert anomaly.service_name == "global"
    assert anomaly.severity == AnomalySeverity.HIGH
    assert anomaly.threshold == pytest.approx(20.0)
    assert "500%" in anomaly.description


def test_volume_spike_and_drop() -> None:
    baseline = LevelTotals(total_logs=7000, total_errors=0, total_warnings=0, unique_services=3)

    spike = detect_anomalies(_stats(3500, 0), baseline, MS_PER_DAY, 7 * MS_PER_DAY, NOW)
    drop = detect_anomalies(_stats(100, 0), baseline, MS_PER_DAY, 7 * MS_PER_DAY, NOW)

    assert [a.type for a in spike] == ["volume_spike"]
    assert [a.type for a in drop] == ["volume_drop"]


def test_service_with_high_error_rate() -> None:
    services = [
        ServiceBreakdown(service_name="svc-bad", log_count=20, error_count=18),
        ServiceBreakdown(service_name="svc-few", log_count=10, error_count=9),
        ServiceBreakdown(service_name="svc-ok", log_count=100, error_count=20),
    ]

    anomalies = detect_anomalies(_stats(130, 47, services), LevelTotals(0, 0, 0, 0), MS_PER_DAY, 7 * MS_PER_DAY, NOW)

    assert [(a.service_name, a.severity) for a in anomalies] == [("svc-bad", AnomalySeverity.HIGH)]
    assert anomalies[0].description == "High error rate (90.0%)"


async def test_anomalies_are_stored(
    db_manager: DatabaseManager,
    job: GlobalAnalysisJob,
    inference: AsyncMock,
    seed_logs,  # type: ignore[no-untyped-def]
) -> None:
    await seed_logs("svc-bad", LogLevel.ERROR, 12, timestamp=WINDOW_START)
    inference.complete.side_effect = InferenceError("unavailable")

    analysis = await _run(job)

    assert analysis.result.patterns == ["1 anomalies detected"]
    async with db_manager.session() as session:
        row = await session.get(GlobalAnalysisRow, analysis.id)
    assert row is not None
    (stored,) = json.loads(row.anomalies_json or "[]")
    assert stored["service_name"] == "svc-bad"
    assert stored["severity"] == "high"
