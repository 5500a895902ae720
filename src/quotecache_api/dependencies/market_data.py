# src/quotecache_api/dependencies/market_data.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Dependency wiring for Market Data.

Overview:
    FastAPI dependency providers for the quote service and the cache store.
    Both objects are built once by the lifespan bootstrap and stored on
    ``app.state``; tests override these providers via
    ``app.dependency_overrides``.

Layer:
    dependencies
"""

from __future__ import annotations

from fastapi import Request

from quotecache_api.application.interfaces.cache_port import CachePort
from quotecache_api.application.services.quote_service import QuoteService


def get_quote_service(request: Request) -> QuoteService:
    """Return the application-scoped quote service."""
    service: QuoteService = request.app.state.quote_service
    return service


def get_cache_store(request: Request) -> CachePort:
    """Return the application-scoped cache store."""
    store: CachePort = request.app.state.cache_store
    return store
