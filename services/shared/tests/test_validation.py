"""Tests for submission validation and level normalization."""

import logging

import pytest

from logcore.exceptions import ValidationError
from logcore.ingestion.validation import check_batch_size, metadata_size, normalize_level, validate_submission
from logcore.models import LogSubmission


def _submission(**overrides: object) -> LogSubmission:
    fields: dict[str, object] = {"service_name": "svc-a", "level": "INFO", "message": "hello"}
    fields.update(overrides)
    return LogSubmission.model_validate(fields)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("warning", "WARN"),
        ("WARNING", "WARN"),
        ("fatal", "CRITICAL"),
        ("trace", "DEBUG"),
        ("error", "ERROR"),
        ("Info", "INFO"),
        ("verbose", "VERBOSE"),
    ],
)
def test_normalize_level(raw: str, expected: str) -> None:
    assert normalize_level(raw) == expected


def test_valid_submission_passes() -> None:
    validate_submission(_submission(level="warning", metadata={"k": "v"}))


def test_missing_service_name_rejected() -> None:
    with pytest.raises(ValidationError, match="service_name is required"):
        validate_submission(_submission(service_name=None))


def test_blank_service_name_rejected() -> None:
    with pytest.raises(ValidationError, match="service_name is required"):
        validate_submission(_submission(service_name="   "))


@pytest.mark.parametrize("name", ["svc a", "svc/a", "svc.a", "../etc"])
def test_service_name_pattern_enforced(name: str) -> None:
    with pytest.raises(ValidationError, match="alphanumeric"):
        validate_submission(_submission(service_name=name))


def test_missing_level_rejected() -> None:
    with pytest.raises(ValidationError, match="level is required"):
        validate_submission(_submission(level=None))


def test_unknown_level_rejected() -> None:
    with pytest.raises(ValidationError, match="Invalid log level: verbose"):
        validate_submission(_submission(level="verbose"))


def test_empty_message_rejected() -> None:
    with pytest.raises(ValidationError, match="message is required"):
        validate_submission(_submission(message=""))


def test_oversized_metadata_rejected() -> None:
    with pytest.raises(ValidationError, match="Metadata is too large"):
        validate_submission(_submission(metadata={"blob": "x" * 60_000}))


def test_long_message_accepted_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="logcore.ingestion.validation"):
        validate_submission(_submission(message="x" * 20_000))
    assert "very long" in caplog.text


def test_metadata_size() -> None:
    assert metadata_size(None) == 0
    assert metadata_size({}) == 0
    assert metadata_size({"a": 1}) == len(b'{"a": 1}')


def test_batch_size_limits() -> None:
    check_batch_size(1)
    check_batch_size(1000)
    with pytest.raises(ValidationError, match="cannot be empty"):
        check_batch_size(0)
    with pytest.raises(ValidationError, match="Maximum 1000 logs per batch"):
        check_batch_size(1001)
