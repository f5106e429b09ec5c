"""Log ingestion: validation, the dual-store write path, and tail events."""

from logcore.ingestion.coordinator import IngestionCoordinator
from logcore.ingestion.tail import map_tail_level, tail_event_to_submissions
from logcore.ingestion.validation import check_batch_size, normalize_level, validate_submission

__all__ = [
    "IngestionCoordinator",
    "check_batch_size",
    "map_tail_level",
    "normalize_level",
    "tail_event_to_submissions",
    "validate_submission",
]
