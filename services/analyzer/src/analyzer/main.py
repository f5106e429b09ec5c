"""Main entry point for the analyzer worker."""

import asyncio
import logging
import signal
import sys

from analyzer.runloop import AnalyzerRunLoop
from analyzer.settings import AnalyzerSettings
from logcore.config.constants import ANALYZER_SERVICE_NAME
from logcore.db import DatabaseManager
from logcore.logging import DBLogHandler, configure_logging

logger = logging.getLogger(__name__)


def _register_shutdown_signals(loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event) -> None:
    """Register signal handlers for graceful shutdown on both Unix and Windows."""

    def _signal_handler_sync(signum: int, _frame: object) -> None:
        """Stdlib signal handler (runs in main thread). Thread-safe bridge into asyncio."""
        logger.info("Shutdown signal received (signal %d)", signum)
        loop.call_soon_threadsafe(shutdown_event.set)

    if sys.platform != "win32":
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown_event.set)
    else:
        # loop.add_signal_handler is not supported on Windows
        signal.signal(signal.SIGTERM, _signal_handler_sync)
        signal.signal(signal.SIGINT, _signal_handler_sync)


async def main() -> None:
    """Analyzer entry point with graceful shutdown."""
    configure_logging(ANALYZER_SERVICE_NAME)
    logger.info("Log pipeline analyzer starting...")
    settings = AnalyzerSettings()
    db_manager = DatabaseManager.from_url(settings.DATABASE_URL)
    await db_manager.create_tables()

    db_handler: DBLogHandler | None = None
    if settings.LOG_TO_DB:
        db_handler = DBLogHandler(db_manager, service=ANALYZER_SERVICE_NAME)
        db_handler.setLevel(logging.WARNING)
        logging.getLogger().addHandler(db_handler)
        await db_handler.start()

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    _register_shutdown_signals(loop, shutdown_event)

    try:
        run_loop = AnalyzerRunLoop(settings, db_manager)
        await run_loop.run(shutdown_event)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received, shutting down")
    finally:
        if db_handler is not None:
            logging.getLogger().removeHandler(db_handler)
            await db_handler.stop()
        await db_manager.dispose()
        logger.info("Analyzer shut down complete")


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
