# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""HTTP transport factory for the Yahoo Finance chart API.

The application lifespan owns the returned ``httpx.AsyncClient`` and closes
it at shutdown; the gateway only borrows it.
"""

from __future__ import annotations

from typing import Final

import httpx

from quotecache_api.infrastructure.external_apis.yahoo.settings import YahooSettings

__all__ = ["create_yahoo_http_client", "DEFAULT_HEADERS"]

DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
}


def create_yahoo_http_client(
    settings: YahooSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the shared async HTTP client for chart calls.

    Args:
        settings: Provider settings (timeout, user agent).
        transport: Optional transport override (``httpx.MockTransport`` in tests).

    Returns:
        A pooled ``httpx.AsyncClient``.
    """
    headers = {**DEFAULT_HEADERS, "User-Agent": settings.user_agent}
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_s),
        headers=headers,
        transport=transport,
    )
