"""Prompt construction and response parsing for log analysis."""

import json
import re

from logcore.analysis.models import AnalysisResult, Anomaly, GlobalStats
from logcore.exceptions import InferenceError

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

NO_LOGS_SUMMARY = "No logs found for the specified time range."


def build_analysis_prompt(
    service_name: str,
    total_logs: int,
    error_count: int,
    warning_count: int,
    log_sample: str,
    search_term: str | None = None,
) -> str:
    filter_note = f' (filtered by: "{search_term}")' if search_term else ""
    return f"""Analyze the following logs for the "{service_name}" service{filter_note}:

Total Logs: {total_logs}
Errors: {error_count}
Warnings: {warning_count}

Sample Logs:
{log_sample}

Provide a JSON response with this structure:
{{
  "summary": "Brief 2-3 sentence summary of findings",
  "patterns": ["pattern1", "pattern2", "pattern3"],
  "recommendations": ["rec1", "rec2", "rec3"]
}}

Focus on:
1. Common error patterns
2. Root cause analysis
3. Actionable recommendations

Keep it concise and technical."""


def parse_analysis_response(text: str) -> AnalysisResult:
    """Parse the first JSON object in a completion. Raises InferenceError if there is none."""
    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        raise InferenceError("Inference response contained no JSON object")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise InferenceError(f"Inference response JSON is malformed: {exc}") from exc
    if not isinstance(parsed, dict):
        raise InferenceError("Inference response JSON is not an object")

    patterns = parsed.get("patterns")
    recommendations = parsed.get("recommendations")
    return AnalysisResult(
        summary=str(parsed.get("summary") or "Analysis completed"),
        patterns=[str(p) for p in patterns] if isinstance(patterns, list) else [],
        recommendations=[str(r) for r in recommendations] if isinstance(recommendations, list) else [],
    )


def fallback_result(total_logs: int, error_count: int, warning_count: int) -> AnalysisResult:
    """Summary synthesized from the counts when inference is unavailable."""
    return AnalysisResult(
        summary=(
            f"Analysis completed for {total_logs} logs. "
            f"{error_count} errors and {warning_count} warnings found."
        ),
        patterns=["AI analysis unavailable"],
        recommendations=["Manual review recommended"],
    )


def build_global_analysis_prompt(stats: GlobalStats, anomalies: list[Anomaly], top_services: int = 10) -> str:
    services = "\n".join(
        f"{s.service_name}: {s.error_count} errors ({s.log_count} logs)" for s in stats.services[:top_services]
    )
    anomaly_lines = "\n".join(f"- {a.type} in {a.service_name}: {a.description}" for a in anomalies)
    return f"""Analyze the following system-wide logs:

Total Logs: {stats.total_logs}
Total Errors: {stats.total_errors}
Total Warnings: {stats.total_warnings}
Unique Services: {stats.unique_services}
Error Rate: {stats.error_rate:.2f}%

Top Services by Errors:
{services or "None"}

Detected Anomalies:
{anomaly_lines or "None"}

Provide a JSON response:
{{
  "summary": "2-3 sentence executive summary of system health",
  "patterns": ["pattern1", "pattern2", "pattern3"],
  "recommendations": ["rec1", "rec2", "rec3"]
}}

Focus on system-wide trends and critical issues."""


def global_fallback_result(stats: GlobalStats, anomaly_count: int) -> AnalysisResult:
    """Count-based global summary used when inference is unavailable."""
    return AnalysisResult(
        summary=(
            f"Daily analysis: {stats.total_logs} logs from {stats.unique_services} services. "
            f"Error rate: {stats.error_rate:.2f}%"
        ),
        patterns=[f"{anomaly_count} anomalies detected"],
        recommendations=["Manual review recommended"],
    )
