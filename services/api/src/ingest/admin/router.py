"""Maintenance endpoints: class-based router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from ingest.dependencies import get_cleanup_batcher
from logcore.cleanup import CleanupBatcher, CleanupPreview, CleanupStats

logger = logging.getLogger(__name__)


class AdminRouter:
    """Class-based router for retention cleanup."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("/cleanup", self.cleanup, methods=["POST"], response_model=CleanupStats)
        r.add_api_route("/cleanup/preview", self.preview, methods=["GET"], response_model=CleanupPreview)

    async def cleanup(
        self,
        batcher: Annotated[CleanupBatcher, Depends(get_cleanup_batcher)],
    ) -> CleanupStats:
        """Run one cleanup pass now."""
        logger.info("Manual cleanup requested")
        return await batcher.run_once()

    async def preview(
        self,
        batcher: Annotated[CleanupBatcher, Depends(get_cleanup_batcher)],
    ) -> CleanupPreview:
        """What a cleanup pass would delete, without deleting anything."""
        return await batcher.preview()


_instance = AdminRouter()
router = _instance.router
