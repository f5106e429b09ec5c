"""Conversion of producer trace events into log submissions."""

from logcore.db.enums import LogLevel, LogSource
from logcore.models import LogSubmission, TailEvent

UNKNOWN_SERVICE = "unknown"

_TAIL_LEVELS: dict[str, LogLevel] = {
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "log": LogLevel.INFO,
    "warn": LogLevel.WARN,
    "error": LogLevel.ERROR,
}


def map_tail_level(level: str) -> LogLevel:
    """Map a console level onto the pipeline's levels. Unknown levels become INFO."""
    return _TAIL_LEVELS.get(level.lower(), LogLevel.INFO)


def tail_event_to_submissions(event: TailEvent) -> list[LogSubmission]:
    """Flatten one trace event into submissions: console lines first, then exceptions."""
    service_name = event.script_name or UNKNOWN_SERVICE
    submissions: list[LogSubmission] = []

    for line in event.logs:
        submissions.append(
            LogSubmission(
                service_name=service_name,
                level=map_tail_level(line.level),
                message=" ".join(str(part) for part in line.message),
                timestamp=line.timestamp,
                metadata={
                    "source": LogSource.TAIL.value,
                    "event_timestamp": event.event_timestamp,
                    "outcome": event.outcome,
                    "log_level_original": line.level,
                },
                source=LogSource.TAIL,
            )
        )

    for exc in event.exceptions:
        submissions.append(
            LogSubmission(
                service_name=service_name,
                level=LogLevel.ERROR,
                message=f"{exc.name}: {exc.message}",
                timestamp=exc.timestamp,
                metadata={
                    "source": LogSource.TAIL.value,
                    "exception_name": exc.name,
                    "stack": exc.stack,
                    "outcome": event.outcome,
                    "event_timestamp": event.event_timestamp,
                },
                source=LogSource.TAIL,
            )
        )

    return submissions
