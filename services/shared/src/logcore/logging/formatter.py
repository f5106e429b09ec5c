"""One JSON object per log line, for the pipeline's stdout."""

import json
import logging
from datetime import UTC, datetime

# Correlation attributes attached via ``extra=`` or log filters
CONTEXT_ATTRS = ("request_id", "session_id", "message_id")


class JSONLogFormatter(logging.Formatter):
    """Render a record as a single-line JSON object.

    Example::

        {"timestamp": "2024-01-15T10:00:00.123000+00:00", "level": "WARNING",
         "service": "logpipeline-analyzer", "logger": "analyzer.consumer",
         "message": "...", "session_id": "..."}

    Correlation ids appear only when the record carries them.
    """

    def __init__(self, service: str = "logpipeline") -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        entry: dict[str, object] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({attr: value for attr in CONTEXT_ATTRS if (value := getattr(record, attr, None))})

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        elif record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)
