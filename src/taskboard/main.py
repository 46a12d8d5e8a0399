"""Entry point for the Taskboard FastAPI application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from .api.routers import api_router, health_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db import Database
from .deps import SettingsDependency
from .errors import register_exception_handlers
from .schemas.system import RootResponse
from .views import router as views_router

STATIC_DIR = Path(__file__).resolve().parent / "static"

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Instantiate and configure the FastAPI application.

    A ``database`` supplied by the caller stays the caller's to dispose; one
    built here from ``settings`` is disposed when the application shuts down.
    """

    settings = settings or get_settings()
    configure_logging(settings)

    owns_database = database is None
    store = database if database is not None else Database.from_settings(settings)

    router_prefix = settings.normalized_api_prefix
    openapi_url = f"{router_prefix}/openapi.json" if router_prefix else "/openapi.json"

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.create_tables_on_startup:
            await store.create_all()
        logger.info(
            "Application started",
            extra={"environment": settings.environment, "version": settings.version},
        )
        try:
            yield
        finally:
            if owns_database:
                await store.dispose()
            logger.info("Application stopped")

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Multi-user task tracker with a JSON API and server-rendered board.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=openapi_url,
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.database = store

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age,
        https_only=settings.session_https_only,
        same_site=settings.session_same_site,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    if STATIC_DIR.exists():
        application.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    application.include_router(views_router)
    application.include_router(api_router, prefix=router_prefix)
    application.include_router(health_router)

    @application.get(
        f"{router_prefix}/metadata",
        response_model=RootResponse,
        summary="Service metadata",
        tags=["system"],
    )
    async def read_api_metadata(app_settings: SettingsDependency) -> RootResponse:
        """Expose minimal service metadata for API clients."""

        return RootResponse(
            name=app_settings.project_name,
            environment=app_settings.environment,
            version=app_settings.version,
            api_prefix=app_settings.api_prefix,
        )

    register_exception_handlers(application)
    return application


app = create_app()


def run() -> None:
    """Convenience entry point for the ``taskboard`` console script."""

    settings: Settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )
