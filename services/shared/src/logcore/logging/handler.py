"""Logging handler that feeds the pipeline's own diagnostics back into the logs table."""

import asyncio
import json
import logging
import sys
import threading
import uuid

from logcore.config.constants import METADATA_MESSAGE_MAX_CHARS
from logcore.db.enums import LogLevel, LogSource
from logcore.db.models.log import LogRecord
from logcore.db.session import DatabaseManager

_LEVEL_MAP: dict[int, LogLevel] = {
    logging.DEBUG: LogLevel.DEBUG,
    logging.INFO: LogLevel.INFO,
    logging.WARNING: LogLevel.WARN,
    logging.ERROR: LogLevel.ERROR,
    logging.CRITICAL: LogLevel.CRITICAL,
}


class DBLogHandler(logging.Handler):
    """Logging handler that buffers records and flushes them to the database.

    Records are stored as ``source = agent`` log records under ``service``, so
    they can be searched and analyzed like any producer's logs.

    Thread-safe: ``emit()`` appends to a list protected by a lock.
    The buffer is flushed when it reaches ``buffer_size`` or periodically
    every ``flush_interval`` seconds via an asyncio background task.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        service: str,
        buffer_size: int = 50,
        flush_interval: float = 5.0,
    ) -> None:
        super().__init__()
        self._db_manager = db_manager
        self._service = service
        self._buffer_size = buffer_size
        self._flush_interval = flush_interval
        self._buffer: list[dict[str, object]] = []
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._stopped = False

    def emit(self, record: logging.LogRecord) -> None:
        if self._stopped:
            return

        metadata: dict[str, object] = {"logger": record.name}
        for attr in ("request_id", "session_id"):
            value = getattr(record, attr, None)
            if value:
                metadata[attr] = value
        if record.exc_info and record.exc_info[1] is not None:
            metadata["exception"] = repr(record.exc_info[1])

        entry = {
            "id": str(uuid.uuid4()),
            "service_name": self._service,
            "level": _LEVEL_MAP.get(record.levelno, LogLevel.INFO),
            "message": record.getMessage()[:METADATA_MESSAGE_MAX_CHARS],
            "timestamp": int(record.created * 1000),
            "metadata_json": json.dumps(metadata, default=str),
            "source": LogSource.AGENT,
        }

        with self._lock:
            self._buffer.append(entry)
            should_flush = len(self._buffer) >= self._buffer_size

        if should_flush:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
            loop.call_soon_threadsafe(lambda: asyncio.ensure_future(self.flush_buffer()))
        except RuntimeError:
            pass

    async def flush_buffer(self) -> None:
        with self._lock:
            if not self._buffer:
                return
            batch = self._buffer[:]
            self._buffer.clear()

        try:
            async with self._db_manager.session() as session:
                for entry in batch:
                    session.add(LogRecord(**entry))
        except Exception:
            print(f"DBLogHandler: failed to flush {len(batch)} log entries", file=sys.stderr)

    async def start(self) -> None:
        self._stopped = False
        self._task = asyncio.create_task(self._periodic_flush())

    async def stop(self) -> None:
        self._stopped = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        await self.flush_buffer()

    async def _periodic_flush(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self._flush_interval)
            await self.flush_buffer()
