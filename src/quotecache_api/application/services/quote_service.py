# src/quotecache_api/application/services/quote_service.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Quote Service (facade).

Synopsis:
    The three operations exposed to the transport layer:

    * ``current_quote(symbol)``: latest daily quote, short TTL.
    * ``day_quote(symbol, date?)``: 1-minute bars for one exchange-local day
      when a date is given; daily bars over a trailing window otherwise.
      The two shapes use distinct keys and distinct provider queries.
    * ``all_day_series()``: aggregate of every cached date-less day series.

Errors:
    Every failure leaves this class as exactly one of ``ClientError`` or
    ``ServerError``. Input is validated before any store or provider access.

Layer:
    application/services
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, time, timedelta, timezone
from typing import TypeVar

from quotecache_api.application.schemas.dto.quotes import DAY_SERIES_CODEC, QUOTE_CODEC
from quotecache_api.application.services.cache_keys import CacheKeyBuilder, KeyKind, parse_date
from quotecache_api.application.services.day_series_aggregator import DaySeriesAggregator
from quotecache_api.application.services.quote_cache import QuoteCache
from quotecache_api.domain.entities.quote import AggregateResult, DaySeries, Quote
from quotecache_api.domain.exceptions.base import BoundaryError, ClientError, DomainError, ServerError
from quotecache_api.domain.exceptions.market_data import (
    UPSTREAM_ERRORS,
    CacheUnavailable,
    InvalidQuoteRequest,
)
from quotecache_api.domain.interfaces.gateways.market_data_gateway import (
    MarketDataGatewayProtocol,
)
from quotecache_api.infrastructure.logging.logger import get_json_logger

__all__ = ["QuoteService", "to_boundary_error"]

logger = get_json_logger(__name__)

T = TypeVar("T")

INTRADAY_INTERVAL = "1m"
TRAILING_INTERVAL = "1d"


def to_boundary_error(exc: DomainError) -> BoundaryError:
    """Collapse an internal domain error into ``ClientError`` / ``ServerError``."""
    if isinstance(exc, BoundaryError):
        return exc
    if isinstance(exc, InvalidQuoteRequest):
        return ClientError(str(exc), code=exc.code, http_status=400, details=exc.details)
    if isinstance(exc, UPSTREAM_ERRORS):
        return ServerError(
            str(exc) or "market data provider failed",
            code="UPSTREAM_UNAVAILABLE",
            http_status=502,
            details={"reason": exc.code, **exc.details},
        )
    if isinstance(exc, CacheUnavailable):
        return ServerError(
            str(exc) or "cache store unavailable",
            code="STORE_UNAVAILABLE",
            http_status=503,
            details=exc.details,
        )
    return ServerError(str(exc), code=exc.code, http_status=500, details=exc.details)


class QuoteService:
    """Facade over the key builder, quote cache, aggregator and gateway.

    Args:
        cache: Read-through quote cache.
        aggregator: Day-series aggregator over the same store.
        gateway: Market data provider.
        keys: Key builder carrying the market suffix.
        quote_ttl_s: TTL for current quotes.
        day_series_ttl_s: TTL for day series (dated and trailing).
        exchange_tz: Exchange-local timezone bounding a dated day.
        trailing_days: Window length for the date-less day series.
        clock: Returns "now" as an aware datetime (injectable for tests).
    """

    def __init__(
        self,
        *,
        cache: QuoteCache,
        aggregator: DaySeriesAggregator,
        gateway: MarketDataGatewayProtocol,
        keys: CacheKeyBuilder,
        quote_ttl_s: int = 60,
        day_series_ttl_s: int = 900,
        exchange_tz: timezone = timezone(timedelta(hours=5, minutes=30)),
        trailing_days: int = 30,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cache = cache
        self._aggregator = aggregator
        self._gateway = gateway
        self._keys = keys
        self._quote_ttl_s = quote_ttl_s
        self._day_series_ttl_s = day_series_ttl_s
        self._exchange_tz = exchange_tz
        self._trailing = timedelta(days=trailing_days)
        self._clock = clock or (lambda: datetime.now(UTC))

    async def current_quote(self, symbol: str) -> Quote:
        """Return the latest quote for ``symbol`` (cached for ``quote_ttl_s``)."""

        async def _run() -> Quote:
            key = self._keys.build_key(KeyKind.CURRENT, symbol)
            qualified = self._keys.qualify(symbol)
            return await self._cache.get_or_fetch(
                key,
                lambda: self._gateway.latest_quote(qualified),
                ttl=self._quote_ttl_s,
                codec=QUOTE_CODEC,
            )

        return await self._guard(_run, op="current_quote", symbol=symbol)

    async def day_quote(self, symbol: str, date: str | None = None) -> DaySeries:
        """Return the day series for ``symbol``.

        With ``date`` (``YYYY-MM-DD``) this is the 1-minute series between
        00:00:00 and 23:59:59 exchange time; without it, daily bars over the
        trailing window.
        """

        async def _run() -> DaySeries:
            qualified = self._keys.qualify(symbol)
            if date is not None:
                day = parse_date(date)
                key = self._keys.build_key(KeyKind.DAY_BY_DATE, symbol, day)
                start = datetime.combine(day, time(0, 0, 0), tzinfo=self._exchange_tz)
                end = datetime.combine(day, time(23, 59, 59), tzinfo=self._exchange_tz)
                interval = INTRADAY_INTERVAL
            else:
                key = self._keys.build_key(KeyKind.DAY_AGGREGATE, symbol)
                end = self._clock()
                start = end - self._trailing
                interval = TRAILING_INTERVAL

            async def _fetch() -> DaySeries:
                quotes = await self._gateway.quote_range(qualified, start, end, interval)
                return DaySeries.from_quotes(qualified, quotes)

            return await self._cache.get_or_fetch(
                key, _fetch, ttl=self._day_series_ttl_s, codec=DAY_SERIES_CODEC
            )

        return await self._guard(_run, op="day_quote", symbol=symbol)

    async def all_day_series(self) -> AggregateResult:
        """Return every date-less day series currently cached."""
        pattern = self._keys.day_aggregate_pattern()
        return await self._guard(lambda: self._aggregator.scan_all(pattern), op="all_day_series")

    async def _guard(
        self,
        run: Callable[[], Awaitable[T]],
        *,
        op: str,
        symbol: str | None = None,
    ) -> T:
        try:
            return await run()
        except DomainError as exc:
            boundary = to_boundary_error(exc)
            log = logger.info if isinstance(boundary, ClientError) else logger.warning
            log(
                "quote_service_failed",
                extra={
                    "extra": {
                        "op": op,
                        "symbol": symbol,
                        "code": boundary.code,
                        "reason": exc.code,
                        "http_status": boundary.http_status,
                    }
                },
            )
            if boundary is exc:
                raise
            raise boundary from exc
