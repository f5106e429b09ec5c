"""SQLAlchemy declarative base."""

import enum
import time
from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


def enum_values(enum_cls: type[enum.StrEnum]) -> list[str]:
    """Return enum member values for SQLAlchemy Enum values_callable."""
    return [e.value for e in enum_cls]


def utc_now() -> datetime:
    """Return current UTC time as a naive datetime (the DB convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


def epoch_millis() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)
