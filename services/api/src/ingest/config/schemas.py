"""Request/response schemas for retention config."""

from pydantic import BaseModel

from logcore.models import DefaultConfig, EffectiveServiceConfig


class ConfigOverview(BaseModel):
    defaults: DefaultConfig
    services: list[EffectiveServiceConfig]
