"""Tests for AnalyzerSettings."""

import pytest

from analyzer.settings import AnalyzerSettings


def test_defaults() -> None:
    """Settings have sensible defaults."""
    settings = AnalyzerSettings()
    assert settings.QUEUE_POLL_INTERVAL_SECONDS == 5
    assert settings.QUEUE_BATCH_SIZE == 10
    assert settings.QUEUE_MAX_DELIVERIES == 3
    assert settings.QUEUE_RETRY_BASE_DELAY_SECONDS == 30.0
    assert settings.QUEUE_VISIBILITY_TIMEOUT_SECONDS == 300.0
    assert settings.CLEANUP_INTERVAL_SECONDS == 86_400
    assert settings.SCHEDULED_ANALYSIS_INTERVAL_SECONDS == 21_600
    assert settings.GLOBAL_ANALYSIS_INTERVAL_SECONDS == 86_400
    assert settings.INFERENCE_MAX_RETRIES == 3
    assert settings.ANALYSIS_MAX_LOGS == 1000
    assert settings.LOG_TO_DB is True


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings can be overridden via environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./env.db")
    monkeypatch.setenv("QUEUE_POLL_INTERVAL_SECONDS", "1")
    monkeypatch.setenv("CLEANUP_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("INFERENCE_URL", "http://gpu-box:8080/generate")
    monkeypatch.setenv("LOG_TO_DB", "false")

    settings = AnalyzerSettings()
    assert settings.DATABASE_URL == "sqlite+aiosqlite:///./env.db"
    assert settings.QUEUE_POLL_INTERVAL_SECONDS == 1
    assert settings.CLEANUP_INTERVAL_SECONDS == 0
    assert settings.INFERENCE_URL == "http://gpu-box:8080/generate"
    assert settings.LOG_TO_DB is False
