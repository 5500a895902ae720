# src/quotecache_api/application/services/day_series_aggregator.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Day-series aggregator.

Synopsis:
    Snapshot of every day series currently cached, across symbols. Keys are
    enumerated with a cursor-based scan; each value is fetched and decoded
    independently. Entries evicted between scan and read, or that fail to
    decode, are logged and skipped.

    The aggregator reflects cache contents only: it never talks to the
    provider and never writes.

Layer:
    application/services
"""

from __future__ import annotations

from quotecache_api.application.interfaces.cache_port import CachePort
from quotecache_api.application.schemas.dto.quotes import DAY_SERIES_CODEC
from quotecache_api.domain.entities.quote import AggregateResult, DaySeries
from quotecache_api.infrastructure.logging.logger import get_json_logger
from quotecache_api.infrastructure.observability.metrics import aggregate_skipped_total

logger = get_json_logger(__name__)


class DaySeriesAggregator:
    """Collect cached day series matching a key pattern.

    Args:
        store: Key-value store port.
        page_size: ``COUNT`` hint per scan page.
    """

    def __init__(self, store: CachePort, *, page_size: int = 100) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._store = store
        self._page_size = page_size

    async def scan_all(self, pattern: str) -> AggregateResult:
        """Return every decodable day series whose key matches ``pattern``."""
        # Bounded by the matched keys, like the result itself.
        seen: set[str] = set()
        collected: list[DaySeries] = []

        async for key in self._store.scan(pattern, page_size=self._page_size):
            # SCAN may return a key more than once.
            if key in seen:
                continue
            seen.add(key)

            raw = await self._store.get(key)
            if raw is None:
                aggregate_skipped_total.labels(reason="missing").inc()
                logger.info("aggregate_entry_missing", extra={"extra": {"key": key}})
                continue
            try:
                collected.append(DAY_SERIES_CODEC.decode(raw))
            except ValueError as exc:
                aggregate_skipped_total.labels(reason="corrupt").inc()
                logger.warning(
                    "aggregate_entry_corrupt",
                    extra={"extra": {"key": key, "error": str(exc)[:200]}},
                )

        logger.debug(
            "aggregate_scan_complete",
            extra={"extra": {"pattern": pattern, "keys": len(seen), "series": len(collected)}},
        )
        return AggregateResult(series=tuple(collected))
