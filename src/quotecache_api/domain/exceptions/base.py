# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""
Base Domain Exceptions.

Summary:
    Canonical base class for domain/application exceptions, plus the two
    boundary errors the quote service resolves every failure into. Routers
    map ``ClientError`` / ``ServerError`` to HTTP deterministically.

Layer:
    domain/exceptions
"""
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain/application exceptions."""

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class BoundaryError(DomainError):
    """Error surfaced to the transport layer with a fixed HTTP status."""

    http_status: int = 500

    def __init__(
        self,
        message: str = "",
        *,
        code: str | None = None,
        http_status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status


class ClientError(BoundaryError):
    """The request itself is invalid; no store or provider access happened."""

    code = "BAD_REQUEST"
    http_status = 400


class ServerError(BoundaryError):
    """A dependency (provider or store) failed while serving a valid request."""

    code = "INTERNAL_ERROR"
    http_status = 500
