"""FastAPI application factory and lifespan management."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from enrichment_hub.api.dependencies import get_settings, init_services, shutdown_services
from enrichment_hub.api.middleware.error_handler import (
    error_handler_middleware,
    validation_exception_handler,
)
from enrichment_hub.api.middleware.logging import LoggingMiddleware
from enrichment_hub.api.openapi.routes import callbacks, health, retrieval, videos
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import (
    JsonFormatter,
    TextFormatter,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__)


def _log_level(settings: Settings) -> str:
    return settings.telemetry.log_level or settings.app.log_level


def _setup_logging(settings: Settings) -> None:
    """Configure the package logger before uvicorn starts."""
    configure_logging(
        level=_log_level(settings),
        format_type=settings.telemetry.log_format,
        logger_name="enrichment_hub",
        service=settings.app.name,
    )


def _configure_uvicorn_logging(settings: Settings) -> None:
    """Make uvicorn loggers use the application format.

    Called during lifespan, once uvicorn has installed its handlers.
    """
    level = getattr(logging, _log_level(settings).upper())
    formatter: logging.Formatter
    if settings.telemetry.log_format == "json":
        formatter = JsonFormatter(service=settings.app.name)
    else:
        formatter = TextFormatter(use_colors=sys.stdout.isatty())

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(level)
        for handler in uvicorn_logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)
        if not uvicorn_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(formatter)
            handler.setLevel(level)
            uvicorn_logger.addHandler(handler)
            uvicorn_logger.propagate = False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build services on startup, drain and close them on shutdown."""
    settings: Settings = app.state.settings
    _configure_uvicorn_logging(settings)

    app.state.services = await init_services(settings)
    logger.info(
        "Application started",
        extra={
            "environment": settings.app.environment,
            "worker_configured": app.state.services.dispatcher is not None,
        },
    )

    yield

    await shutdown_services(app.state.services)
    logger.info("Application stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings override; loaded from config and environment
            when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Video registry, enrichment dispatch and transcript search",
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    _configure_middleware(app, settings)
    _register_routes(app, settings)
    return app


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    # Last added runs outermost; error responses still get logged and tagged
    app.middleware("http")(error_handler_middleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _register_routes(app: FastAPI, settings: Settings) -> None:
    prefix = settings.server.api_prefix

    # Health routes stay unprefixed for probes
    app.include_router(health.router, tags=["Health"])

    app.include_router(videos.router, prefix=prefix, tags=["Videos"])
    app.include_router(callbacks.router, prefix=prefix, tags=["Callbacks"])
    app.include_router(retrieval.router, prefix=prefix, tags=["Retrieval"])


_setup_logging(get_settings())

app = create_app()
