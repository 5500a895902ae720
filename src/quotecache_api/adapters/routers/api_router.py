# src/quotecache_api/adapters/routers/api_router.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""API Router Aggregator (Adapters Layer).

Purpose:
    Compose and expose the top-level `router` that includes all feature routers.

Responsibilities:
    • Mount health endpoints at `/healthz` and `/readyz`.
    • Mount quote endpoints under `/v1/quotes/...`.
    • Mount the unversioned `/fetch` and `/fetchday` aliases.
    • Mount the Prometheus scrape endpoint at `/metrics`.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter

from quotecache_api.adapters.routers.health_router import router as health_router
from quotecache_api.adapters.routers.metrics_router import router as metrics_router
from quotecache_api.adapters.routers.quotes_router import legacy_router as quotes_legacy_router
from quotecache_api.adapters.routers.quotes_router import router as quotes_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])

# BaseRouter already includes the /v1/quotes prefix.
router.include_router(quotes_router)
router.include_router(quotes_legacy_router)

router.include_router(metrics_router)
