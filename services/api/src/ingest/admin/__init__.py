"""Maintenance endpoints."""

from ingest.admin.router import router

__all__ = ["router"]
