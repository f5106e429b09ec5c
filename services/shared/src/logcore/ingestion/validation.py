"""Structural validation of raw log submissions."""

import json
import logging
import re

from logcore.config.constants import MAX_BATCH_SIZE, MESSAGE_WARN_CHARS, METADATA_MAX_BYTES, SERVICE_NAME_PATTERN
from logcore.db.enums import LogLevel
from logcore.exceptions import ValidationError
from logcore.models import LogSubmission

logger = logging.getLogger(__name__)

_SERVICE_NAME_RE = re.compile(SERVICE_NAME_PATTERN)

_LEVEL_ALIASES: dict[str, str] = {
    "WARNING": LogLevel.WARN,
    "FATAL": LogLevel.CRITICAL,
    "TRACE": LogLevel.DEBUG,
}

_VALID_LEVELS = frozenset(level.value for level in LogLevel)


def normalize_level(level: str) -> str:
    """Uppercase a level and map common aliases onto the canonical set.

    Total over strings: unknown levels come back uppercased, unchanged otherwise.
    """
    upper = level.upper()
    return str(_LEVEL_ALIASES.get(upper, upper))


def metadata_size(metadata: dict[str, object] | None) -> int:
    """Serialized size of a metadata mapping in bytes."""
    if not metadata:
        return 0
    return len(json.dumps(metadata, default=str).encode("utf-8"))


def validate_submission(submission: LogSubmission) -> None:
    """Raise ValidationError if the submission breaks a structural invariant.

    A very long message is allowed but logged as a warning.
    """
    service_name = submission.service_name
    if not service_name or not service_name.strip():
        raise ValidationError("service_name is required")
    if not _SERVICE_NAME_RE.match(service_name):
        raise ValidationError("service_name must contain only alphanumeric characters, dashes, and underscores")

    if not submission.level:
        raise ValidationError("level is required")
    if normalize_level(submission.level) not in _VALID_LEVELS:
        raise ValidationError(
            f"Invalid log level: {submission.level}. Must be one of: {', '.join(level.value for level in LogLevel)}"
        )

    if not submission.message or not submission.message.strip():
        raise ValidationError("message is required")
    if len(submission.message) > MESSAGE_WARN_CHARS:
        logger.warning(
            "Log message for %s is very long (%d chars); only the archive keeps the full text",
            service_name,
            len(submission.message),
        )

    size = metadata_size(submission.metadata)
    if size > METADATA_MAX_BYTES:
        raise ValidationError(f"Metadata is too large ({size} bytes). Maximum is {METADATA_MAX_BYTES // 1000}KB.")


def check_batch_size(count: int) -> None:
    """Reject empty or oversized batches before any store write happens."""
    if count == 0:
        raise ValidationError("logs array cannot be empty")
    if count > MAX_BATCH_SIZE:
        raise ValidationError(f"Maximum {MAX_BATCH_SIZE} logs per batch")
