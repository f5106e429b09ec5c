"""Retention config endpoints."""

from ingest.config.router import router

__all__ = ["router"]
