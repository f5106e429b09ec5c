"""Metadata store connection settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from logcore.config.constants import DEFAULT_DATABASE_URL


class DatabaseSettings(BaseSettings):
    """Read from ``DATABASE_URL``, ``ECHO`` and friends.

    NullPool is the default: every service here opens short sessions from
    several event loops (worker, tests, TestClient portals).
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    use_null_pool: bool = True
    pool_pre_ping: bool = True

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
