"""Log ingestion and query endpoints."""

from ingest.logs.router import router

__all__ = ["router"]
