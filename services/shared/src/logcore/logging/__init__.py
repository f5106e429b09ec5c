"""Structured logging: JSON formatter, root setup, and the self-ingesting DB handler."""

from logcore.logging.formatter import JSONLogFormatter
from logcore.logging.handler import DBLogHandler
from logcore.logging.setup import configure_logging

__all__ = ["DBLogHandler", "JSONLogFormatter", "configure_logging"]
