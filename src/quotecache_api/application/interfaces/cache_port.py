# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Application Interface: Cache Port.

Synopsis:
    Minimal key-value behavior used by the quote cache and the day-series
    aggregator. Enables swapping Redis, fakeredis, or in-memory doubles.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol


class CachePort(Protocol):
    """Bytes key-value store with TTL and cursor-based pattern scans.

    Keys passed in and yielded out are unqualified; implementations own any
    namespace prefix. Store failures surface as ``CacheUnavailable``.
    """

    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or ``None`` on a miss."""
        ...

    async def set(self, key: str, value: str | bytes, *, ttl: int) -> None:
        """Store ``value`` under ``key`` expiring after ``ttl`` seconds."""
        ...

    async def set_if_absent(self, key: str, value: str, *, ttl: int) -> bool:
        """Store only when ``key`` is absent; return whether it was written."""
        ...

    async def delete(self, key: str) -> None:
        """Remove ``key``; a missing key is not an error."""
        ...

    def scan(self, pattern: str, *, page_size: int) -> AsyncIterator[str]:
        """Yield keys matching a glob ``pattern``, one cursor page at a time."""
        ...

    async def ping(self) -> bool:
        """Return True when the store answers."""
        ...
