"""FastAPI application factory for Studioplan.

This module provides the application factory that creates and configures
a FastAPI application with:
- CORS middleware for cross-origin requests
- Request logging middleware with correlation IDs
- The studio service shared by all routers through ``app.state``

Example usage:
    >>> from studioplan.config import StudioplanConfig
    >>> from studioplan.web.app import create_app
    >>>
    >>> app = create_app(StudioplanConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="127.0.0.1", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studioplan import __version__
from studioplan.config import StudioplanConfig
from studioplan.logging import get_logger
from studioplan.studio.service import StudioService
from studioplan.studio.store import StudioStore
from studioplan.web.middleware import RequestLoggingMiddleware
from studioplan.web.routes.contracts import create_contracts_router
from studioplan.web.routes.dashboard import create_dashboard_router
from studioplan.web.routes.health import create_health_router
from studioplan.web.routes.payments import create_payments_router
from studioplan.web.routes.schedules import create_schedules_router
from studioplan.web.routes.settings import create_settings_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log application startup and shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None after startup
    """
    config: StudioplanConfig = app.state.config
    service: StudioService = app.state.service

    logger.info(
        "app_startup",
        host=config.web.host,
        port=config.web.port,
        contracts=len(service.state.contracts),
    )
    yield
    logger.info("app_shutdown")


def create_app(
    config: StudioplanConfig | None = None,
    service: StudioService | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional StudioplanConfig. If None, creates default config.
        service: Studio service to expose. If None, one backed by the
            configured data file is created.

    Returns:
        Configured FastAPI application instance.

    Raises:
        StudioStoreError: If the configured data file cannot be read.
    """
    if config is None:
        config = StudioplanConfig()
    if service is None:
        service = StudioService(store=StudioStore(config.storage.data_file))

    app = FastAPI(
        title="Studioplan",
        version=__version__,
        description="Contracts, project schedules and payments for design studios",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(create_health_router())
    app.include_router(create_schedules_router())
    app.include_router(create_contracts_router())
    app.include_router(create_payments_router())
    app.include_router(create_dashboard_router())
    app.include_router(create_settings_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
    )

    return app
