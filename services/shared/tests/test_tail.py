"""Tests for trace event conversion."""

import pytest

from logcore.db.enums import LogLevel, LogSource
from logcore.ingestion.tail import UNKNOWN_SERVICE, map_tail_level, tail_event_to_submissions
from logcore.models import TailEvent, TailException, TailLogLine


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("log", LogLevel.INFO),
        ("info", LogLevel.INFO),
        ("debug", LogLevel.DEBUG),
        ("warn", LogLevel.WARN),
        ("error", LogLevel.ERROR),
        ("ERROR", LogLevel.ERROR),
        ("trace", LogLevel.INFO),
    ],
)
def test_map_tail_level(level: str, expected: LogLevel) -> None:
    assert map_tail_level(level) == expected


def test_lines_then_exceptions() -> None:
    event = TailEvent(
        script_name="worker-1",
        outcome="ok",
        event_timestamp=100,
        logs=[TailLogLine(level="info", message=["a", {"b": 1}], timestamp=101)],
        exceptions=[TailException(name="Error", message="bad", timestamp=102, stack="at x")],
    )

    submissions = tail_event_to_submissions(event)

    assert [s.message for s in submissions] == ["a {'b': 1}", "Error: bad"]
    line, exc = submissions
    assert line.level == LogLevel.INFO
    assert line.timestamp == 101
    assert line.source == LogSource.TAIL
    assert line.metadata == {
        "source": "tail",
        "event_timestamp": 100,
        "outcome": "ok",
        "log_level_original": "info",
    }
    assert exc.level == LogLevel.ERROR
    assert exc.metadata is not None
    assert exc.metadata["exception_name"] == "Error"
    assert exc.metadata["stack"] == "at x"


def test_missing_script_name_uses_unknown() -> None:
    event = TailEvent(logs=[TailLogLine(message=["hi"], timestamp=1)])

    (submission,) = tail_event_to_submissions(event)

    assert submission.service_name == UNKNOWN_SERVICE
    assert submission.level == LogLevel.INFO


def test_empty_event_produces_nothing() -> None:
    assert tail_event_to_submissions(TailEvent(script_name="x")) == []
