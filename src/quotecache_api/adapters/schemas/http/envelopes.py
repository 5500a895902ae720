# src/quotecache_api/adapters/schemas/http/envelopes.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Canonical transport-facing HTTP envelopes:
      - ErrorEnvelope: {"error": ErrorObject}
      - SuccessEnvelope[T]: {"data": T}
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from quotecache_api.adapters.schemas.http.base import BaseHTTPSchema
from quotecache_api.domain.exceptions.base import BoundaryError

__all__ = [
    "ErrorObject",
    "ErrorEnvelope",
    "SuccessEnvelope",
]


# ---------------------------------------------------------------------------
# Error Object
# ---------------------------------------------------------------------------


class ErrorObject(BaseModel):
    """Structured error object inside ErrorEnvelope.

    Error codes are UPPER_SNAKE_CASE and stable across releases:
        - INVALID_REQUEST: malformed symbol or date (400).
        - VALIDATION_ERROR: missing/invalid query parameters (422).
        - UPSTREAM_UNAVAILABLE: market data provider failed (502).
        - STORE_UNAVAILABLE: cache store unreachable (503).
        - INTERNAL_ERROR: unhandled failure (500).
    """

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "UPSTREAM_UNAVAILABLE",
                    "http_status": 502,
                    "message": "provider timed out",
                    "details": {"reason": "MARKET_DATA_UNAVAILABLE"},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured details safe for clients.",
    )
    trace_id: str | None = Field(
        default=None,
        description="Request correlation identifier.",
    )


# ---------------------------------------------------------------------------
# Error Envelope
# ---------------------------------------------------------------------------


class ErrorEnvelope(BaseHTTPSchema):
    r"""Canonical error envelope: {"error": ErrorObject}."""

    model_config = ConfigDict(
        title="ErrorEnvelope",
        extra="forbid",
    )

    error: ErrorObject = Field(..., description="Structured error details.")

    @classmethod
    def from_boundary(cls, exc: BoundaryError, *, trace_id: str | None = None) -> ErrorEnvelope:
        """Render a boundary error as an envelope."""
        return cls(
            error=ErrorObject(
                code=exc.code,
                http_status=exc.http_status,
                message=str(exc) or exc.code,
                details=exc.details or {},
                trace_id=trace_id,
            )
        )


# ---------------------------------------------------------------------------
# Success Envelope
# ---------------------------------------------------------------------------


T = TypeVar("T")


class SuccessEnvelope(BaseHTTPSchema, Generic[T]):
    r"""Success envelope for non-paginated responses: {"data": T}."""

    model_config = ConfigDict(
        title="SuccessEnvelope",
        extra="forbid",
    )

    data: T = Field(..., description="Returned resource or value.")
