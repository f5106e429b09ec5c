"""Main FastAPI application for the log pipeline ingest API."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ingest.admin import router as admin_router
from ingest.analysis import router as analysis_router
from ingest.config import router as config_router
from ingest.constants import APP_DESCRIPTION, APP_TITLE, APP_VERSION, Routes
from ingest.dependencies import db_manager, get_coordinator
from ingest.logs import router as logs_router
from ingest.middleware import RequestIDLogFilter, RequestIDMiddleware
from ingest.settings import get_settings
from logcore.config.constants import INGEST_SERVICE_NAME
from logcore.exceptions import SessionNotFoundError, StoreError, ValidationError
from logcore.logging import DBLogHandler, configure_logging

logger = logging.getLogger(__name__)


class LogPipelineApp:
    """Application container: configures middleware, routers, error mapping, and lifespan."""

    app: FastAPI

    def __init__(self) -> None:
        configure_logging(INGEST_SERVICE_NAME)
        for handler in logging.getLogger().handlers:
            handler.addFilter(RequestIDLogFilter())
        self.app = FastAPI(
            title=APP_TITLE,
            description=APP_DESCRIPTION,
            version=APP_VERSION,
            lifespan=self._lifespan,
        )
        self._setup_middleware()
        self._setup_exception_handlers()
        self._setup_routers()

    @staticmethod
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Create tables and start the DB log handler; drain archive writes on shutdown."""
        await db_manager.create_tables()

        db_log_handler: DBLogHandler | None = None
        if get_settings().LOG_TO_DB:
            db_log_handler = DBLogHandler(db_manager, service=INGEST_SERVICE_NAME)
            db_log_handler.setLevel(logging.WARNING)
            await db_log_handler.start()
            logging.getLogger().addHandler(db_log_handler)
        try:
            yield
        finally:
            coordinator = get_coordinator()
            if coordinator.pending_archive_writes:
                logger.info("Waiting for %d archive write(s)", coordinator.pending_archive_writes)
            await coordinator.drain()
            if db_log_handler is not None:
                logging.getLogger().removeHandler(db_log_handler)
                await db_log_handler.stop()
            await db_manager.dispose()

    def _setup_middleware(self) -> None:
        settings = get_settings()

        self.app.add_middleware(RequestIDMiddleware)

        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_exception_handlers(self) -> None:
        @self.app.exception_handler(ValidationError)
        async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
            return JSONResponse(status_code=400, content={"detail": str(exc)})

        @self.app.exception_handler(SessionNotFoundError)
        async def session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
            return JSONResponse(status_code=404, content={"detail": str(exc)})

        @self.app.exception_handler(StoreError)
        async def store_error(request: Request, exc: StoreError) -> JSONResponse:
            logger.error("Metadata store error on %s: %s", request.url.path, exc)
            return JSONResponse(status_code=503, content={"detail": "Metadata store unavailable"})

        @self.app.exception_handler(SQLAlchemyError)
        async def database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
            logger.error("Database error on %s: %s", request.url.path, exc)
            return JSONResponse(status_code=503, content={"detail": "Metadata store unavailable"})

    def _setup_routers(self) -> None:
        self.app.include_router(logs_router, prefix=Routes.LOGS.prefix, tags=[Routes.LOGS.tag])
        self.app.include_router(config_router, prefix=Routes.CONFIG.prefix, tags=[Routes.CONFIG.tag])
        self.app.include_router(analysis_router, prefix=Routes.ANALYSIS.prefix, tags=[Routes.ANALYSIS.tag])
        self.app.include_router(admin_router, prefix=Routes.ADMIN.prefix, tags=[Routes.ADMIN.tag])

        @self.app.get(Routes.HEALTH)
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "healthy"}

        @self.app.get("/")
        async def root() -> dict[str, str]:
            """Root endpoint."""
            return {"message": APP_TITLE, "version": APP_VERSION}


_application = LogPipelineApp()
app: FastAPI = _application.app
