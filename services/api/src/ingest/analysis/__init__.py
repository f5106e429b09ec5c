"""On-demand analysis endpoints."""

from ingest.analysis.router import router

__all__ = ["router"]
