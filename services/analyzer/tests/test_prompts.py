"""Tests for prompt construction and response parsing."""

import pytest

from analyzer.prompts import (
    build_analysis_prompt,
    build_global_analysis_prompt,
    fallback_result,
    global_fallback_result,
    parse_analysis_response,
)
from logcore.analysis.models import Anomaly, GlobalStats, ServiceBreakdown
from logcore.db.enums import AnomalySeverity
from logcore.exceptions import InferenceError


def test_prompt_includes_counts_and_sample() -> None:
    prompt = build_analysis_prompt("svc-a", 7, 5, 2, "[ERROR] boom")

    assert 'logs for the "svc-a" service:' in prompt
    assert "Total Logs: 7" in prompt
    assert "Errors: 5" in prompt
    assert "Warnings: 2" in prompt
    assert "[ERROR] boom" in prompt
    assert "filtered by" not in prompt


def test_prompt_mentions_search_term() -> None:
    prompt = build_analysis_prompt("svc-a", 1, 1, 0, "", search_term="timeout")

    assert '(filtered by: "timeout")' in prompt


def test_parse_json_embedded_in_text() -> None:
    text = 'Sure! {"summary": "s", "patterns": ["a", 2], "recommendations": ["r"]} Hope that helps.'

    result = parse_analysis_response(text)

    assert result.summary == "s"
    assert result.patterns == ["a", "2"]
    assert result.recommendations == ["r"]


def test_parse_missing_fields_get_defaults() -> None:
    result = parse_analysis_response('{"patterns": "not a list"}')

    assert result.summary == "Analysis completed"
    assert result.patterns == []
    assert result.recommendations == []


@pytest.mark.parametrize("text", ["no json here", '{"summary": "unterminated', "{not: valid}"])
def test_parse_failures_raise(text: str) -> None:
    with pytest.raises(InferenceError):
        parse_analysis_response(text)


def test_fallback_result() -> None:
    result = fallback_result(10, 3, 4)

    assert result.summary == "Analysis completed for 10 logs. 3 errors and 4 warnings found."
    assert result.patterns == ["AI analysis unavailable"]
    assert result.recommendations == ["Manual review recommended"]


def test_global_prompt_lists_top_services_and_anomalies() -> None:
    stats = GlobalStats(
        total_logs=200,
        total_errors=30,
        total_warnings=10,
        unique_services=12,
        services=[ServiceBreakdown(service_name=f"svc-{i}", log_count=20, error_count=12 - i) for i in range(12)],
    )
    anomaly = Anomaly(
        type="error_spike",
        service_name="global",
        severity=AnomalySeverity.MEDIUM,
        description="Error count increased by 150% compared to the baseline average",
        value=30,
        threshold=24,
        detected_at=0,
    )

    prompt = build_global_analysis_prompt(stats, [anomaly], top_services=10)

    assert "Error Rate: 15.00%" in prompt
    assert "svc-0: 12 errors (20 logs)" in prompt
    assert "svc-10" not in prompt
    assert "- error_spike in global: Error count increased by 150%" in prompt


def test_global_prompt_without_data() -> None:
    prompt = build_global_analysis_prompt(GlobalStats(), [])

    assert "Total Logs: 0" in prompt
    assert prompt.count("None") == 2


def test_global_fallback_result() -> None:
    result = global_fallback_result(GlobalStats(total_logs=3, total_errors=1, unique_services=2), 4)

    assert result.summary == "Daily analysis: 3 logs from 2 services. Error rate: 33.33%"
    assert result.patterns == ["4 anomalies detected"]
