"""Tests for structured logging and the database log handler."""

import json
import logging
import sys

from logcore.db.enums import LogLevel, LogSource
from logcore.db.operations import LogRepository
from logcore.db.session import DatabaseManager
from logcore.logging import DBLogHandler, JSONLogFormatter


def _record(message: str, level: int = logging.INFO, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("logcore.test", level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields() -> None:
    formatter = JSONLogFormatter(service="analyzer")

    entry = json.loads(formatter.format(_record("hello", request_id="req-1", session_id="s-1")))

    assert entry["message"] == "hello"
    assert entry["level"] == "INFO"
    assert entry["service"] == "analyzer"
    assert entry["logger"] == "logcore.test"
    assert entry["request_id"] == "req-1"
    assert entry["session_id"] == "s-1"


def test_json_formatter_omits_missing_ids() -> None:
    entry = json.loads(JSONLogFormatter().format(_record("plain")))

    assert "request_id" not in entry
    assert "session_id" not in entry


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("kaboom")
    except RuntimeError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

    entry = json.loads(JSONLogFormatter().format(record))

    assert "RuntimeError: kaboom" in entry["exception"]


async def test_db_handler_flushes_agent_records(db_manager: DatabaseManager) -> None:
    handler = DBLogHandler(db_manager, service="logpipeline-test", buffer_size=100)

    handler.emit(_record("queue backlog growing", logging.WARNING, request_id="req-9"))
    handler.emit(_record("x" * 2000, logging.CRITICAL))
    await handler.flush_buffer()

    async with db_manager.session() as session:
        records = await LogRepository().search(session, service_name="logpipeline-test")
    by_level = {r.level: r for r in records}
    warn = by_level[LogLevel.WARN]
    assert warn.message == "queue backlog growing"
    assert warn.source == LogSource.AGENT
    assert json.loads(warn.metadata_json or "{}") == {"logger": "logcore.test", "request_id": "req-9"}
    assert len(by_level[LogLevel.CRITICAL].message) == 1000


async def test_db_handler_stop_flushes_and_ignores_later_records(db_manager: DatabaseManager) -> None:
    handler = DBLogHandler(db_manager, service="logpipeline-test", flush_interval=60)
    await handler.start()

    handler.emit(_record("before stop"))
    await handler.stop()
    handler.emit(_record("after stop"))
    await handler.flush_buffer()

    async with db_manager.session() as session:
        records = await LogRepository().search(session, service_name="logpipeline-test")
    assert [r.message for r in records] == ["before stop"]
