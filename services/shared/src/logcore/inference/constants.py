"""Inference client defaults."""

DEFAULT_INFERENCE_URL = "http://localhost:11434/api/generate"
DEFAULT_INFERENCE_MODEL = "llama-3-8b-instruct"

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_REQUEST_TIMEOUT = 60.0  # seconds
MAX_RETRY_AFTER = 60.0  # seconds; longer server hints are clamped
