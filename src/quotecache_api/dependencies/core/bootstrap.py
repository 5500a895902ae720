# src/quotecache_api/dependencies/core/bootstrap.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Core bootstrap for infrastructure (Redis, HTTP) and the quote service.

This module owns the lifecycle of shared infrastructure used by the FastAPI
app. Configuration is read from Settings; the store client and HTTP client are
created here, handed to the services explicitly, and closed on exit.

The single public surface is :func:`bootstrap`, an async context manager that
yields a state object holding the resolved Settings, the cache store and the
wired :class:`QuoteService`.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from quotecache_api.adapters.gateways.yahoo_gateway import YahooFinanceGateway
from quotecache_api.application.interfaces.cache_port import CachePort
from quotecache_api.application.services.cache_keys import CacheKeyBuilder
from quotecache_api.application.services.day_series_aggregator import DaySeriesAggregator
from quotecache_api.application.services.quote_cache import QuoteCache, SingleFlightPolicy
from quotecache_api.application.services.quote_service import QuoteService
from quotecache_api.config.settings import Settings, get_settings
from quotecache_api.infrastructure.caching.redis_cache import RedisCache
from quotecache_api.infrastructure.caching.redis_client import (
    RedisClient,
    close_redis_client,
    create_redis_client,
)
from quotecache_api.infrastructure.external_apis.yahoo.client import create_yahoo_http_client
from quotecache_api.infrastructure.external_apis.yahoo.settings import YahooSettings
from quotecache_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: Settings
    store: CachePort
    http_client: httpx.AsyncClient
    quote_service: QuoteService


def load_yahoo_settings(settings: Settings) -> YahooSettings:
    """Project the canonical Settings onto the provider settings model."""
    return YahooSettings(
        base_url=settings.yahoo_base_url,
        timeout_s=settings.yahoo_timeout_s,
        user_agent=settings.yahoo_user_agent,
    )


def build_quote_service(
    settings: Settings,
    *,
    store: CachePort,
    http_client: httpx.AsyncClient,
) -> QuoteService:
    """Wire the quote service from settings and already-open clients."""
    singleflight = (
        SingleFlightPolicy(
            lock_ttl=settings.cache_singleflight_lock_ttl_s,
            wait_timeout=settings.cache_singleflight_wait_s,
        )
        if settings.cache_singleflight_enabled
        else None
    )
    return QuoteService(
        cache=QuoteCache(store, singleflight=singleflight),
        aggregator=DaySeriesAggregator(store, page_size=settings.cache_scan_page_size),
        gateway=YahooFinanceGateway(http_client, load_yahoo_settings(settings)),
        keys=CacheKeyBuilder(market_suffix=settings.market_suffix),
        quote_ttl_s=settings.quote_ttl_s,
        day_series_ttl_s=settings.day_series_ttl_s,
        exchange_tz=settings.exchange_tz,
        trailing_days=settings.day_trailing_days,
    )


@asynccontextmanager
async def bootstrap(
    *,
    settings: Settings | None = None,
    redis_client: RedisClient | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[BootstrapState, None]:
    """Initialize and teardown shared infrastructure.

    Responsibilities:
        * Load application settings.
        * Create the Redis client (unless one is injected) and the store adapter.
        * Create the shared HTTPX AsyncClient for the provider.
        * Ensure both clients are closed on exit, even on error.

    Args:
        settings: Settings override; defaults to :func:`get_settings`.
        redis_client: Pre-built client (e.g. ``fakeredis``). Injected clients
            are not closed here.
        http_transport: Transport override for the provider client.

    Yields:
        BootstrapState: Settings, store and the wired quote service.
    """
    settings = settings or get_settings()
    logger.info(
        "bootstrap.start",
        extra={"extra": {"environment": settings.environment.value}},
    )

    owns_redis = redis_client is None
    client = redis_client if redis_client is not None else create_redis_client(settings)
    store = RedisCache(client, namespace=settings.cache_namespace)
    http_client = create_yahoo_http_client(
        load_yahoo_settings(settings), transport=http_transport
    )

    state = BootstrapState(
        settings=settings,
        store=store,
        http_client=http_client,
        quote_service=build_quote_service(settings, store=store, http_client=http_client),
    )

    try:
        yield state
    finally:
        try:
            await http_client.aclose()
        except Exception:
            logger.exception("bootstrap.http_client_close_failed")

        if owns_redis:
            try:
                await close_redis_client(client)
            except Exception:
                logger.exception("bootstrap.redis_close_failed")

        logger.info("bootstrap.stop")
