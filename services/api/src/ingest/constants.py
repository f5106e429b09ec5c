"""Centralized constants for the ingest API service."""

from dataclasses import dataclass

# --- Application metadata ---

APP_TITLE = "Log Pipeline API"
APP_DESCRIPTION = "Log ingestion, search, retention config, and on-demand analysis"
APP_VERSION = "0.1.0"

API_PREFIX = "/api/v1"


# --- Route configuration ---


@dataclass(frozen=True, slots=True)
class _Route:
    """A route prefix paired with its OpenAPI tag."""

    prefix: str
    tag: str


class Routes:
    """API route prefixes and tags."""

    LOGS = _Route(API_PREFIX, "logs")
    CONFIG = _Route(f"{API_PREFIX}/config", "config")
    ANALYSIS = _Route(f"{API_PREFIX}/analysis", "analysis")
    ADMIN = _Route(f"{API_PREFIX}/admin", "admin")
    HEALTH = "/healthz"


# --- Query limits ---

DEFAULT_SEARCH_LIMIT = 100
MAX_SEARCH_LIMIT = 1000
DEFAULT_SESSION_LIST_LIMIT = 20
