# src/quotecache_api/application/services/quote_cache.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Quote Cache (read-through).

Synopsis:
    Cache-aside retrieval for quote records on top of a :class:`CachePort`.

Protocol:
    1. Read the key from the store.
    2. On a hit, decode. A value that fails to decode is logged, counted and
       treated as a miss; the next successful fetch overwrites it.
    3. On a miss, await the fetcher.
    4. Encode and store the fresh record with its TTL.
    5. Return the fresh record.

    A failing fetcher propagates unchanged and nothing is written. Store
    failures surface as ``CacheUnavailable`` from the port.

Concurrency:
    Concurrent misses on one key may each call the fetcher. Provider calls
    are read-only, so duplicates only cost upstream load. With single-flight
    enabled, a short-lived ``<key>:lock`` entry (SET NX) elects one fetcher;
    the others poll the key briefly before fetching themselves. The winner
    deletes the lock once its fetch settles, whether it succeeded or failed.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from quotecache_api.application.interfaces.cache_port import CachePort
from quotecache_api.domain.exceptions.market_data import CacheUnavailable
from quotecache_api.infrastructure.logging.logger import get_json_logger
from quotecache_api.infrastructure.observability.metrics import (
    cache_corrupt_entries_total,
    cache_hits_total,
    cache_misses_total,
    source_label,
)

__all__ = ["QuoteCache", "RecordCodec", "SingleFlightPolicy"]

logger = get_json_logger(__name__)

T = TypeVar("T")


class RecordCodec(Protocol[T]):
    """Encode/decode a record to the stored representation."""

    def encode(self, entity: T) -> str: ...

    def decode(self, raw: str | bytes) -> T: ...


@dataclass(frozen=True)
class SingleFlightPolicy:
    """Tuning for lock-based stampede protection.

    Attributes:
        lock_ttl: TTL of the ``<key>:lock`` entry in seconds.
        wait_timeout: Max seconds a loser waits for the winner to populate.
        wait_interval: Sleep between polls in seconds.
    """

    lock_ttl: int = 5
    wait_timeout: float = 0.5
    wait_interval: float = 0.01


class QuoteCache:
    """Read-through cache for quote records.

    Args:
        store: Key-value store port.
        singleflight: Optional stampede protection; disabled when ``None``.
    """

    def __init__(self, store: CachePort, *, singleflight: SingleFlightPolicy | None = None) -> None:
        self._store = store
        self._singleflight = singleflight

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl: int,
        codec: RecordCodec[T],
    ) -> T:
        """Return the cached record for ``key`` or fetch, store and return it.

        Args:
            key: Cache key tail.
            fetcher: Zero-arg coroutine factory hitting the provider.
            ttl: Time-to-live for a freshly stored record, in seconds.
            codec: Codec for the record type.

        Returns:
            The cached or freshly fetched record.
        """
        source = source_label(key)
        cached = await self._read(key, codec)
        if cached is not None:
            cache_hits_total.labels(source=source).inc()
            logger.debug("cache_hit", extra={"extra": {"key": key}})
            return cached

        cache_misses_total.labels(source=source).inc()
        logger.debug("cache_miss", extra={"extra": {"key": key}})

        policy = self._singleflight
        if policy is None:
            return await self._fetch_and_store(key, fetcher, ttl=ttl, codec=codec)
        return await self._fetch_singleflight(key, fetcher, ttl=ttl, codec=codec, policy=policy)

    async def _read(self, key: str, codec: RecordCodec[T]) -> T | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return codec.decode(raw)
        except ValueError as exc:
            cache_corrupt_entries_total.labels(source=source_label(key)).inc()
            logger.warning(
                "cache_entry_corrupt",
                extra={"extra": {"key": key, "error": str(exc)[:200]}},
            )
            return None

    async def _fetch_and_store(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl: int,
        codec: RecordCodec[T],
    ) -> T:
        value = await fetcher()
        payload = codec.encode(value)
        await self._store.set(key, payload, ttl=ttl)
        return value

    async def _fetch_singleflight(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl: int,
        codec: RecordCodec[T],
        policy: SingleFlightPolicy,
    ) -> T:
        lock_key = f"{key}:lock"
        got_lock = await self._store.set_if_absent(lock_key, "1", ttl=policy.lock_ttl)
        if got_lock:
            try:
                # Re-check: another worker may have populated between read and lock.
                cached = await self._read(key, codec)
                if cached is not None:
                    return cached
                return await self._fetch_and_store(key, fetcher, ttl=ttl, codec=codec)
            finally:
                await self._release(lock_key)

        deadline = time.perf_counter() + policy.wait_timeout
        while time.perf_counter() < deadline:
            await asyncio.sleep(policy.wait_interval)
            cached = await self._read(key, codec)
            if cached is not None:
                return cached

        logger.info("singleflight_wait_expired", extra={"extra": {"key": key}})
        return await self._fetch_and_store(key, fetcher, ttl=ttl, codec=codec)

    async def _release(self, lock_key: str) -> None:
        # A lock that cannot be deleted still expires after lock_ttl.
        try:
            await self._store.delete(lock_key)
        except CacheUnavailable as exc:
            logger.warning(
                "singleflight_release_failed",
                extra={"extra": {"key": lock_key, "error": str(exc)}},
            )
