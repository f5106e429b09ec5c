"""Retention config endpoints: class-based router."""

import re
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ingest.config.schemas import ConfigOverview
from ingest.dependencies import db_manager
from logcore.config.constants import SERVICE_NAME_PATTERN
from logcore.db.operations import ConfigRepository
from logcore.exceptions import ValidationError
from logcore.models import EffectiveServiceConfig, ServiceConfigUpdate

_SERVICE_NAME_RE = re.compile(SERVICE_NAME_PATTERN)


class ConfigRouter:
    """Class-based router for per-service and default config."""

    def __init__(self) -> None:
        self._configs = ConfigRepository()
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("", self.overview, methods=["GET"], response_model=ConfigOverview)
        r.add_api_route("/{service_name}", self.get_config, methods=["GET"], response_model=EffectiveServiceConfig)
        r.add_api_route("/{service_name}", self.update_config, methods=["PUT"], response_model=EffectiveServiceConfig)

    async def overview(
        self,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
    ) -> ConfigOverview:
        """Defaults plus every explicitly configured service."""
        defaults = await self._configs.get_default_config(session)
        configs = await self._configs.list_service_configs(session)
        services = [
            EffectiveServiceConfig(
                service_name=c.service_name,
                ttl_days=c.ttl_days,
                retention_policy=c.retention_policy,
                alert_on_errors=c.alert_on_errors,
                max_logs_per_day=c.max_logs_per_day,
            )
            for c in configs
        ]
        return ConfigOverview(defaults=defaults, services=services)

    async def get_config(
        self,
        service_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
    ) -> EffectiveServiceConfig:
        """The service's config, or the defaults if it was never configured."""
        return await self._configs.get_effective_config(service_name, session)

    async def update_config(
        self,
        service_name: str,
        changes: ServiceConfigUpdate,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
    ) -> EffectiveServiceConfig:
        if not _SERVICE_NAME_RE.match(service_name):
            raise ValidationError("service_name must contain only alphanumeric characters, dashes, and underscores")
        await self._configs.update_service_config(service_name, changes, session)
        return await self._configs.get_effective_config(service_name, session)


_instance = ConfigRouter()
router = _instance.router
