"""Shared configuration."""

from logcore.config.constants import DEFAULT_DATABASE_URL
from logcore.config.database import DatabaseSettings

__all__ = [
    "DEFAULT_DATABASE_URL",
    "DatabaseSettings",
]
