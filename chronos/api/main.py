"""FastAPI application factory and lifespan management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chronos.api.middleware.error_handler import error_handler_middleware
from chronos.api.middleware.logging import LoggingMiddleware
from chronos.api.openapi.routes import health, recovery, videos
from chronos.commons.settings import Settings, get_settings
from chronos.commons.telemetry import JsonFormatter, TextFormatter, configure_logging
from chronos.infrastructure.factory import InfrastructureFactory

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _configure_logging(settings: Settings) -> None:
    """Route application and uvicorn logs through the same formatter."""
    level = settings.telemetry.log_level or settings.app.log_level
    log_format = settings.telemetry.log_format

    configure_logging(level=level, format_type=log_format, logger_name="chronos")

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    for name in UVICORN_LOGGERS:
        for handler in logging.getLogger(name).handlers:
            handler.setFormatter(formatter)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the infrastructure on startup and close it on shutdown.

    A factory passed to ``create_app`` is used as is; otherwise one is
    created from the app settings and the record store indexes are created
    eagerly so a bad configuration fails at startup.
    """
    settings: Settings = app.state.settings
    if settings.telemetry.enabled:
        _configure_logging(settings)

    if getattr(app.state, "factory", None) is None:
        app.state.factory = InfrastructureFactory(settings)
        await app.state.factory.ensure_indexes()

    yield

    await app.state.factory.close_all()


def create_app(
    settings: Settings | None = None,
    factory: InfrastructureFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from config and environment if omitted.
        factory: Prebuilt infrastructure, mainly for tests.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or (factory.settings if factory else get_settings())

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Video pipeline status, statistics and stuck-video recovery",
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.factory = factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.middleware("http")(error_handler_middleware)

    prefix = settings.server.api_prefix
    app.include_router(health.router, tags=["Health"])
    app.include_router(videos.router, prefix=prefix, tags=["Videos"])
    app.include_router(recovery.router, prefix=prefix, tags=["Recovery"])

    return app
