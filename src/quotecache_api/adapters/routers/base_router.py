# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""
Base Router (Adapters Layer)

Purpose:
    Provide a canonical APIRouter wrapper and shared utilities for HTTP endpoints:
      - Versioned routing with stable prefixes (e.g., "/v1/quotes").
      - Standard error response mapping using ErrorEnvelope.
      - Rendering of boundary errors as enveloped JSON responses.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from quotecache_api.adapters.schemas.http.envelopes import ErrorEnvelope
from quotecache_api.domain.exceptions.base import BoundaryError
from quotecache_api.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

# Tag type accepted by FastAPI for APIRouter.tags
TagType = str | Enum


class BaseRouter(APIRouter):
    """Canonical router wrapper for versioned HTTP endpoints.

    Args:
        version: API version segment (e.g., "v1").
        resource: Plural resource segment (e.g., "quotes").
        prefix: Optional explicit prefix (overrides version/resource).
        tags: Default tags applied to all routes mounted on this router.
        dependencies: Optional global dependencies for all routes.
        **kwargs: Additional APIRouter kwargs.
    """

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        dependencies: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        computed_prefix = prefix or f"/{version}/{resource}"
        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            dependencies=list(dependencies) if dependencies is not None else None,
            **kwargs,
        )
        _LOGGER.info(
            "router_initialized",
            extra={"extra": {"prefix": computed_prefix, "tags": [str(t) for t in tags or []]}},
        )

    # -------------------------------------------------------------------------
    # Response helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def trace_id(request: Request) -> str | None:
        """Return the correlation id assigned by the request-id middleware."""
        return getattr(request.state, "request_id", None)

    @classmethod
    def send_error(cls, request: Request, exc: BoundaryError) -> JSONResponse:
        """Render a boundary error as an ErrorEnvelope with its HTTP status."""
        envelope = ErrorEnvelope.from_boundary(exc, trace_id=cls.trace_id(request))
        return JSONResponse(status_code=exc.http_status, content=envelope.model_dump_http())

    # -------------------------------------------------------------------------
    # OpenAPI Error Responses
    # -------------------------------------------------------------------------

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Return the canonical error response mapping for endpoints.

        Use in routes via:

            responses=BaseRouter.std_error_responses()
        """
        return {
            400: {"model": ErrorEnvelope, "description": "Bad request (malformed symbol or date)."},
            422: {"model": ErrorEnvelope, "description": "Missing or invalid query parameters."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
            502: {"model": ErrorEnvelope, "description": "Market data provider failed."},
            503: {"model": ErrorEnvelope, "description": "Cache store unavailable."},
        }
