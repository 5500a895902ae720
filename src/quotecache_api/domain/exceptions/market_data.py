# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""
Market Data Domain Exceptions

Purpose:
    Exceptions raised below the service facade: invalid client input, upstream
    provider failures and key-value store failures. The facade translates them
    into ``ClientError`` / ``ServerError``.

Layer: domain/exceptions
"""
from __future__ import annotations

from .base import DomainError


class InvalidQuoteRequest(DomainError):
    """Malformed symbol or date supplied by the client."""

    code = "INVALID_REQUEST"


class MarketDataUnavailable(DomainError):
    """Third-party market data dependency is unavailable or timed out."""

    code = "MARKET_DATA_UNAVAILABLE"


class SymbolNotFound(DomainError):
    """Upstream has no data for the requested symbol."""

    code = "SYMBOL_NOT_FOUND"


class MarketDataBadRequest(DomainError):
    """Upstream rejected the query parameters (e.g. an invalid range)."""

    code = "UPSTREAM_BAD_REQUEST"


class MarketDataValidationError(DomainError):
    """Upstream returned an unexpected/invalid payload."""

    code = "UPSTREAM_SCHEMA_ERROR"


class CacheUnavailable(DomainError):
    """The key-value store could not be reached or rejected a command."""

    code = "STORE_UNAVAILABLE"


#: Provider-side failures; all surface as upstream server errors.
UPSTREAM_ERRORS: tuple[type[DomainError], ...] = (
    MarketDataUnavailable,
    SymbolNotFound,
    MarketDataBadRequest,
    MarketDataValidationError,
)
