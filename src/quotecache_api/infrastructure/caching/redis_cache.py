# src/quotecache_api/infrastructure/caching/redis_cache.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Redis Cache (CachePort adapter).

Synopsis:
    Thin adapter that implements the application CachePort Protocol on top of
    an injected asyncio Redis client. Provides namespaced get/set with TTL,
    SET NX and DEL for single-flight locks, and cursor-based SCAN.

Design:
    * Key policy:
        - The namespace prefix owns the service + version:
            `quotecache:v1`
        - Callers provide the key tail built by `CacheKeyBuilder`:
            e.g. `TCS.NS`, `TCS.NS_2024-05-02`, `TCS.NS_day`
        - Bumping the version segment is how a schema change avoids decoding
          old-format entries.
    * Values are opaque bytes/str; encoding is the codec's job.
    * Every Redis or socket failure surfaces as `CacheUnavailable`.

Layer:
    infrastructure/caching

See Also:
    - quotecache_api.infrastructure.caching.redis_client
    - quotecache_api.application.interfaces.cache_port.CachePort
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import suppress

from redis.exceptions import RedisError

from quotecache_api.application.interfaces.cache_port import CachePort
from quotecache_api.domain.exceptions.market_data import CacheUnavailable
from quotecache_api.infrastructure.caching.redis_client import RedisClient
from quotecache_api.infrastructure.logging.logger import get_json_logger
from quotecache_api.infrastructure.observability.metrics import readyz_redis_latency_seconds

__all__ = ["RedisCache", "DEFAULT_NAMESPACE"]

DEFAULT_NAMESPACE = "quotecache:v1"

_STORE_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError)

logger = get_json_logger(__name__)


class RedisCache(CachePort):
    """Redis-backed implementation of the CachePort Protocol.

    Args:
        client: Shared asyncio Redis client (connection pool).
        namespace: Prefix applied to all keys to avoid collisions.
    """

    def __init__(self, client: RedisClient, *, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._client = client
        self._ns = namespace.strip(":")

    # ------------------------------------------------------------------ #
    # Key helpers
    # ------------------------------------------------------------------ #
    def _k(self, key: str) -> str:
        """Build a namespaced key."""
        key = key.lstrip(":")
        return f"{self._ns}:{key}" if self._ns else key

    def _tail(self, full_key: str | bytes) -> str:
        """Strip the namespace from a key returned by SCAN."""
        if isinstance(full_key, bytes):
            full_key = full_key.decode("utf-8")
        prefix = f"{self._ns}:" if self._ns else ""
        return full_key.removeprefix(prefix)

    # ------------------------------------------------------------------ #
    # CachePort implementation
    # ------------------------------------------------------------------ #
    async def get(self, key: str) -> bytes | None:
        """Return the raw value stored under ``key``, or ``None``."""
        try:
            raw = await self._client.get(self._k(key))
        except _STORE_ERRORS as exc:
            raise CacheUnavailable("cache read failed", details={"op": "get"}) from exc
        if raw is None:
            return None
        return raw if isinstance(raw, bytes) else str(raw).encode("utf-8")

    async def set(self, key: str, value: str | bytes, *, ttl: int) -> None:
        """Store ``value`` with ``SET ... EX ttl``; TTL <= 0 stores nothing."""
        if ttl <= 0:
            return
        try:
            await self._client.set(self._k(key), value, ex=ttl)
        except _STORE_ERRORS as exc:
            raise CacheUnavailable("cache write failed", details={"op": "set"}) from exc

    async def set_if_absent(self, key: str, value: str, *, ttl: int) -> bool:
        """``SET key value NX EX ttl``; True when this caller created the key."""
        try:
            res = await self._client.set(self._k(key), value, ex=max(ttl, 1), nx=True)
        except _STORE_ERRORS as exc:
            raise CacheUnavailable("cache lock failed", details={"op": "set_nx"}) from exc
        return bool(res)

    async def delete(self, key: str) -> None:
        """Remove ``key`` with ``DEL``."""
        try:
            await self._client.delete(self._k(key))
        except _STORE_ERRORS as exc:
            raise CacheUnavailable("cache delete failed", details={"op": "delete"}) from exc

    async def scan(self, pattern: str, *, page_size: int) -> AsyncIterator[str]:
        """Yield key tails matching ``pattern`` using ``SCAN MATCH COUNT``."""
        try:
            async for full_key in self._client.scan_iter(match=self._k(pattern), count=page_size):
                yield self._tail(full_key)
        except _STORE_ERRORS as exc:
            raise CacheUnavailable("cache scan failed", details={"op": "scan"}) from exc

    async def ping(self) -> bool:
        """Return True when Redis answers PING; records probe latency."""
        start = time.perf_counter()
        try:
            return bool(await self._client.ping())
        except _STORE_ERRORS as exc:
            logger.warning("redis_ping_failed", extra={"extra": {"error": str(exc)}})
            return False
        finally:
            with suppress(Exception):
                readyz_redis_latency_seconds.observe(time.perf_counter() - start)
