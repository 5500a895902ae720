# src/quotecache_api/infrastructure/caching/redis_client.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Async Redis client factory.

Design notes:
    * Provides a small Protocol (`RedisClient`) for the subset of commands the
      store adapter issues.
    * Uses redis.asyncio under the hood. The client owns a connection pool and
      is safe for unbounded concurrent use from one event loop.
    * No module-level singleton: the application lifespan creates one client
      and passes it to the store adapter explicitly.
    * Responses are *not* decoded so corrupt bytes reach the codec, which
      treats them as a cache miss.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, cast, runtime_checkable

import redis.asyncio as aioredis

from quotecache_api.config.settings import Settings

__all__ = ["RedisClient", "create_redis_client", "close_redis_client"]


@runtime_checkable
class RedisClient(Protocol):
    """Protocol for the subset of Redis methods used by the application."""

    async def get(self, name: str) -> Any: ...
    async def set(
        self,
        name: str,
        value: Any,
        *,
        ex: int | None = None,
        nx: bool = False,
    ) -> Any: ...
    async def delete(self, *names: str) -> Any: ...
    def scan_iter(
        self, match: str | None = None, count: int | None = None
    ) -> AsyncIterator[Any]: ...
    async def ping(self) -> Any: ...
    async def aclose(self) -> Any: ...


def create_redis_client(settings: Settings) -> RedisClient:
    """Build the asyncio Redis client from settings.

    Args:
        settings: Application settings (URL and socket tuning).

    Returns:
        A pooled client; no connection is opened until the first command.
    """
    # Untyped shim: redis stubs disagree on the from_url signature.
    _from_url: Any = aioredis.from_url
    client = _from_url(
        settings.redis_url,
        decode_responses=False,
        health_check_interval=settings.redis_health_check_interval_s,
        socket_timeout=settings.redis_socket_timeout_s,
        socket_connect_timeout=settings.redis_socket_connect_timeout_s,
    )
    return cast(RedisClient, client)


async def close_redis_client(client: RedisClient) -> None:
    """Close the client and its pool at shutdown."""
    await client.aclose()
