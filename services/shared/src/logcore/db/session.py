"""Database session management via DatabaseManager class."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from logcore.config.constants import SQLITE_BUSY_TIMEOUT_SECONDS
from logcore.config.database import DatabaseSettings
from logcore.db.base import Base


class DatabaseManager:
    """Owns the async engine and hands out transactional sessions.

    Usage:
        db = DatabaseManager.from_env()
        await db.create_tables()

        async with db.session() as session:
            result = await session.execute(query)

        # FastAPI
        session: Annotated[AsyncSession, Depends(db.dependency)]

        await db.dispose()
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        engine_kwargs: dict[str, object] = {"echo": settings.echo, "pool_pre_ping": settings.pool_pre_ping}
        if settings.use_null_pool:
            engine_kwargs["poolclass"] = NullPool
        if settings.is_sqlite:
            # Concurrent writers wait on SQLite's file lock instead of failing
            engine_kwargs["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        self._engine = create_async_engine(settings.database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_env(cls) -> Self:
        """Create a DatabaseManager from environment variables."""
        return cls(DatabaseSettings())

    @classmethod
    def from_url(cls, database_url: str) -> Self:
        return cls(DatabaseSettings(database_url=database_url))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Get a database session with automatic commit/rollback.

        Commits on success, rolls back on exception.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def dependency(self) -> AsyncGenerator[AsyncSession]:
        """FastAPI Depends() compatible session provider."""
        async with self.session() as session:
            yield session

    async def create_tables(self) -> None:
        """Create any missing tables from the model metadata."""
        import logcore.db.models  # noqa: F401  (registers models on Base.metadata)

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Dispose of the engine and release all connections."""
        await self._engine.dispose()
