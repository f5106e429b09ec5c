"""Application settings loaded from environment variables."""

import functools

from pydantic_settings import BaseSettings

from logcore.config.constants import (
    ANALYSIS_MAX_RANGE_DAYS,
    ANALYSIS_QUEUE_MAX_DELIVERIES,
    ANALYSIS_QUEUE_RETRY_BASE_DELAY_SECONDS,
    ANALYSIS_QUEUE_VISIBILITY_TIMEOUT_SECONDS,
    DEFAULT_DATABASE_URL,
)


class AppSettings(BaseSettings):
    """Ingest API configuration."""

    # Stores
    DATABASE_URL: str = DEFAULT_DATABASE_URL
    ARCHIVE_ROOT: str = "./data/archive"

    # Analysis requests
    ANALYSIS_MAX_RANGE_DAYS: int = ANALYSIS_MAX_RANGE_DAYS
    QUEUE_VISIBILITY_TIMEOUT_SECONDS: float = ANALYSIS_QUEUE_VISIBILITY_TIMEOUT_SECONDS
    QUEUE_MAX_DELIVERIES: int = ANALYSIS_QUEUE_MAX_DELIVERIES
    QUEUE_RETRY_BASE_DELAY_SECONDS: float = ANALYSIS_QUEUE_RETRY_BASE_DELAY_SECONDS

    # CORS
    CORS_ALLOWED_ORIGINS: str = "http://localhost:5173"  # comma-separated origins

    # Self-logging into the logs table
    LOG_TO_DB: bool = True

    model_config = {"env_prefix": ""}


@functools.lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings singleton."""
    return AppSettings()
