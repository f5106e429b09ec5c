"""Analyzer service configuration loaded from environment variables."""

from pydantic_settings import BaseSettings

from logcore.config.constants import (
    ANALYSIS_MAX_LOGS,
    ANALYSIS_QUEUE_BATCH_SIZE,
    ANALYSIS_QUEUE_MAX_DELIVERIES,
    ANALYSIS_QUEUE_RETRY_BASE_DELAY_SECONDS,
    ANALYSIS_QUEUE_VISIBILITY_TIMEOUT_SECONDS,
    DEFAULT_DATABASE_URL,
)
from logcore.inference.constants import (
    DEFAULT_INFERENCE_MODEL,
    DEFAULT_INFERENCE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
)


class AnalyzerSettings(BaseSettings):
    """Analyzer service configuration."""

    # Stores
    DATABASE_URL: str = DEFAULT_DATABASE_URL
    ARCHIVE_ROOT: str = "./data/archive"

    # Queue consumption
    QUEUE_POLL_INTERVAL_SECONDS: int = 5
    QUEUE_BATCH_SIZE: int = ANALYSIS_QUEUE_BATCH_SIZE
    QUEUE_VISIBILITY_TIMEOUT_SECONDS: float = ANALYSIS_QUEUE_VISIBILITY_TIMEOUT_SECONDS
    QUEUE_MAX_DELIVERIES: int = ANALYSIS_QUEUE_MAX_DELIVERIES
    QUEUE_RETRY_BASE_DELAY_SECONDS: float = ANALYSIS_QUEUE_RETRY_BASE_DELAY_SECONDS

    # Periodic jobs (0 disables)
    CLEANUP_INTERVAL_SECONDS: int = 24 * 60 * 60
    SCHEDULED_ANALYSIS_INTERVAL_SECONDS: int = 6 * 60 * 60
    GLOBAL_ANALYSIS_INTERVAL_SECONDS: int = 24 * 60 * 60

    # Inference
    INFERENCE_URL: str = DEFAULT_INFERENCE_URL
    INFERENCE_MODEL: str = DEFAULT_INFERENCE_MODEL
    INFERENCE_API_TOKEN: str = ""
    INFERENCE_TIMEOUT_SECONDS: float = DEFAULT_REQUEST_TIMEOUT
    INFERENCE_MAX_RETRIES: int = DEFAULT_MAX_RETRIES

    # Analysis
    ANALYSIS_MAX_LOGS: int = ANALYSIS_MAX_LOGS

    # Self-logging into the logs table
    LOG_TO_DB: bool = True

    model_config = {"env_prefix": ""}
