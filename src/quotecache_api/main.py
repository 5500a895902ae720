# src/quotecache_api/main.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers and routers.
    Provides an application factory (`create_app`) and a module-level eager
    app (`app`) for uvicorn and tooling.

Design:
    • Bootstrap only (no business logic): routers + middleware + handlers.
    • Lifespan builds the Redis client, HTTP client and quote service, places
      them on ``app.state`` and tears them down on shutdown.
    • Root JSON logging configured at import time.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.routing import APIRoute

from quotecache_api.adapters.routers import api_router
from quotecache_api.config.settings import Settings, get_settings
from quotecache_api.dependencies.core.bootstrap import bootstrap
from quotecache_api.infrastructure.caching.redis_client import RedisClient
from quotecache_api.infrastructure.http.errors import install_exception_handlers
from quotecache_api.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)
from quotecache_api.infrastructure.middleware.request_id import RequestIdMiddleware

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
configure_root_logging()
logger = get_json_logger(__name__)

GREETING = "Hello, World!"


def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId, e.g. ``get__v1_quotes_current``."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


def _make_lifespan(
    settings: Settings,
    *,
    redis_client: RedisClient | None,
    http_transport: httpx.AsyncBaseTransport | None,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Initialize and teardown shared infrastructure via the core bootstrap."""
        async with bootstrap(
            settings=settings,
            redis_client=redis_client,
            http_transport=http_transport,
        ) as state:
            app.state.settings = state.settings
            app.state.cache_store = state.store
            app.state.http_client = state.http_client
            app.state.quote_service = state.quote_service
            yield

    return runtime_lifespan


def create_app(
    settings: Settings | None = None,
    *,
    redis_client: RedisClient | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings override; defaults to :func:`get_settings`.
        redis_client: Pre-built Redis client (e.g. ``fakeredis`` in tests).
        http_transport: Transport override for the provider HTTP client.

    Returns:
        FastAPI: Fully configured application instance.
    """
    settings = settings or get_settings()
    configure_root_logging(settings.log_level)

    service_version = settings.service_version or "0.0.0"

    app = FastAPI(
        title="Quotecache API",
        version=service_version,
        description="Read-through cache for exchange quotes.",
        lifespan=_make_lifespan(
            settings, redis_client=redis_client, http_transport=http_transport
        ),
        docs_url=settings.docs_url,
        openapi_url=settings.openapi_url,
        generate_unique_id_function=_stable_operation_id,
    )

    install_exception_handlers(app)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        """Return the service greeting."""
        return GREETING

    logger.info(
        "service_startup",
        extra={
            "extra": {
                "service": settings.service_name,
                "env": settings.environment.value,
                "version": service_version,
                "status": "starting",
            }
        },
    )
    return app


# Eager app for uvicorn and tooling.
app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "quotecache_api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8080")),
    )
