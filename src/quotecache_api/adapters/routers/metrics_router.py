# src/quotecache_api/adapters/routers/metrics_router.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (`/metrics`).

Warms the readiness histogram so its `_bucket`/`_count`/`_sum` series appear
on the very first scrape.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from quotecache_api.infrastructure.logging.logger import get_json_logger
from quotecache_api.infrastructure.observability.metrics import readyz_redis_latency_seconds

logger = get_json_logger(__name__)
router = APIRouter()

_warmed = False


@router.get("/metrics", include_in_schema=False)
async def metrics_probe() -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    global _warmed
    if not _warmed:
        readyz_redis_latency_seconds.observe(0.0)
        _warmed = True
        logger.debug("metrics_router: warmed readyz_redis_latency_seconds")
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
