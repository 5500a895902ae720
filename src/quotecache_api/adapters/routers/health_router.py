# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Health endpoints (Adapters Layer).

Purpose:
    Expose liveness and readiness signals suitable for container orchestrators and
    load balancers.

Design:
    * Liveness (`/healthz`) performs no I/O.
    * Readiness (`/readyz`) pings the cache store through the injected port; the
      store adapter records probe latency to Prometheus.
    * HTTP 200 when every check is "ok", otherwise 503 with the same body shape.
"""

from __future__ import annotations

import time
import typing as t
from enum import Enum
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field

from quotecache_api.adapters.schemas.http.base import BaseHTTPSchema
from quotecache_api.application.interfaces.cache_port import CachePort
from quotecache_api.dependencies.market_data import get_cache_store
from quotecache_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)
router = APIRouter()


class HealthState(str, Enum):
    """Overall service health classification."""

    OK = "ok"
    DEGRADED = "degraded"


class CheckResult(BaseHTTPSchema):
    """Result of a single dependency check."""

    name: str = Field(..., examples=["redis"])
    status: t.Literal["ok", "down"]
    detail: str | None = None
    duration_ms: float


class ReadinessResponse(BaseHTTPSchema):
    """Aggregated readiness response."""

    status: HealthState
    checks: list[CheckResult] = Field(default_factory=list)


class LivenessResponse(BaseHTTPSchema):
    """Liveness response indicating the process is running."""

    status: t.Literal["ok"] = "ok"


@router.get(
    "/healthz",
    summary="Liveness",
    operation_id="health_liveness",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
)
async def liveness() -> LivenessResponse:
    """Return a fast liveness signal (no external I/O)."""
    return LivenessResponse()


@router.get(
    "/readyz",
    summary="Readiness",
    operation_id="health_readiness",
    response_model=ReadinessResponse,
    responses={503: {"description": "Cache store unreachable", "model": ReadinessResponse}},
)
async def readiness(
    response: Response,
    store: Annotated[CachePort, Depends(get_cache_store)],
) -> ReadinessResponse:
    """Report readiness based on a cache store PING."""
    start = time.perf_counter()
    ok = await store.ping()
    duration_ms = (time.perf_counter() - start) * 1000.0

    check = CheckResult(
        name="redis",
        status="ok" if ok else "down",
        detail=None if ok else "ping failed",
        duration_ms=duration_ms,
    )
    if not ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    payload = ReadinessResponse(
        status=HealthState.OK if ok else HealthState.DEGRADED,
        checks=[check],
    )
    logger.info(
        "readiness_probe",
        extra={"extra": {"overall": payload.status, "checks": [check.model_dump_http()]}},
    )
    return payload
