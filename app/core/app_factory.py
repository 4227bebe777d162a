"""Builds the FastAPI application.

The service container (store, upstream client, limiter, services) is
created in the lifespan and closed on shutdown, so no connection is opened
at import time and tests can hand in a container wired with fakes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import admin_router, health_router, species_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import TAGS_METADATA, apply_openapi_customizations
from app.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        container: Pre-built service container (tests inject fakes here).
            When omitted, one is built from settings at startup.

    Returns:
        Configured FastAPI app with lifespan, middleware, handlers, routers and docs.
    """
    configure_logging(settings.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = container or ServiceContainer(settings)
        app.state.container = services
        logger.info(
            "app.startup",
            extra={
                "cache_backend": services.config.cache.backend,
                "codec_mode": services.config.cache.codec_mode,
                "rate_limit_requests": services.config.app.rate_limit_requests,
            },
        )
        try:
            yield
        finally:
            await services.aclose()

    app = FastAPI(
        title="Species Cache Proxy",
        description=(
            "Read-through caching proxy for a paginated species catalog. "
            "Serves list, detail and batch lookups from a shared cache, "
            "falls back to the upstream API on a miss, and rate-limits "
            "clients per IP."
        ),
        version="0.1.0",
        openapi_tags=TAGS_METADATA,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    # Routers (admin before the catch-all detail route)
    app.include_router(admin_router)
    app.include_router(species_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
