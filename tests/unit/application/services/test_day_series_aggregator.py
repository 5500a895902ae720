# tests/unit/application/services/test_day_series_aggregator.py
from __future__ import annotations

import pytest

from quotecache_api.application.schemas.dto.quotes import DAY_SERIES_CODEC, QUOTE_CODEC
from quotecache_api.application.services.day_series_aggregator import DaySeriesAggregator
from quotecache_api.domain.entities.quote import DaySeries
from quotecache_api.domain.exceptions.market_data import CacheUnavailable
from quotecache_api.infrastructure.caching.redis_cache import RedisCache


def _seed(store, make_quote, symbols: list[str]) -> None:
    for sym in symbols:
        series = DaySeries.from_quotes(sym, [make_quote(symbol=sym)])
        store.put_raw(f"{sym}_day", DAY_SERIES_CODEC.encode(series))


@pytest.mark.asyncio
@pytest.mark.parametrize("page_size", [1, 10])
async def test_result_is_independent_of_page_size(store, make_quote, page_size) -> None:
    _seed(store, make_quote, ["AAA.NS", "BBB.NS", "CCC.NS"])
    store.put_raw("AAA.NS", QUOTE_CODEC.encode(make_quote(symbol="AAA.NS")))
    store.put_raw(
        "AAA.NS_2024-05-02",
        DAY_SERIES_CODEC.encode(DaySeries.from_quotes("AAA.NS", [make_quote(symbol="AAA.NS")])),
    )

    result = await DaySeriesAggregator(store, page_size=page_size).scan_all("*.NS_day")

    assert len(result.series) == 3
    assert result.symbols() == {"AAA.NS", "BBB.NS", "CCC.NS"}


@pytest.mark.asyncio
async def test_corrupt_entries_are_skipped(store, make_quote) -> None:
    _seed(store, make_quote, ["AAA.NS", "BBB.NS"])
    store.put_raw("BAD.NS_day", b"{truncated")

    result = await DaySeriesAggregator(store).scan_all("*.NS_day")

    assert result.symbols() == {"AAA.NS", "BBB.NS"}


class _VanishingStore:
    """Scan reports a key whose value is already gone, plus a duplicate."""

    def __init__(self, inner) -> None:
        self._inner = inner

    async def get(self, key: str):
        if key == "GONE.NS_day":
            return None
        return await self._inner.get(key)

    async def scan(self, pattern: str, *, page_size: int):
        yield "GONE.NS_day"
        async for key in self._inner.scan(pattern, page_size=page_size):
            yield key
            yield key


@pytest.mark.asyncio
async def test_missing_and_duplicate_keys_are_tolerated(store, make_quote) -> None:
    _seed(store, make_quote, ["AAA.NS"])

    result = await DaySeriesAggregator(_VanishingStore(store)).scan_all("*.NS_day")  # type: ignore[arg-type]

    assert [s.symbol for s in result.series] == ["AAA.NS"]


@pytest.mark.asyncio
async def test_empty_store_yields_empty_result(store) -> None:
    result = await DaySeriesAggregator(store).scan_all("*.NS_day")
    assert result.series == ()


@pytest.mark.asyncio
async def test_store_failure_propagates(store) -> None:
    store.fail = True
    with pytest.raises(CacheUnavailable):
        await DaySeriesAggregator(store).scan_all("*.NS_day")


def test_page_size_must_be_positive(store) -> None:
    with pytest.raises(ValueError):
        DaySeriesAggregator(store, page_size=0)


@pytest.mark.asyncio
@pytest.mark.parametrize("page_size", [1, 10])
async def test_redis_cursor_paging_returns_every_series_once(
    async_redis, sync_redis, make_quote, page_size
) -> None:
    symbols = [f"S{i:02d}.NS" for i in range(25)]
    for sym in symbols:
        series = DaySeries.from_quotes(sym, [make_quote(symbol=sym)])
        sync_redis.set(f"quotecache:v1:{sym}_day", DAY_SERIES_CODEC.encode(series), ex=900)
    sync_redis.set("quotecache:v1:S00.NS", QUOTE_CODEC.encode(make_quote(symbol="S00.NS")))
    sync_redis.set("quotecache:v1:S00.NS_2024-05-02", b"{}")

    aggregator = DaySeriesAggregator(RedisCache(async_redis), page_size=page_size)
    result = await aggregator.scan_all("*.NS_day")

    assert len(result.series) == len(symbols)
    assert result.symbols() == set(symbols)
