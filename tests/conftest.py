# tests/conftest.py
from __future__ import annotations

import fnmatch
from collections.abc import AsyncIterator, Callable
from datetime import datetime
from typing import Any

import fakeredis
import fakeredis.aioredis
import pytest

from quotecache_api.config.settings import Environment, Settings
from quotecache_api.domain.entities.quote import Quote
from quotecache_api.domain.exceptions.market_data import CacheUnavailable, SymbolNotFound

# Epoch seconds for 2024-05-02 09:15:00 +05:30.
T0 = 1_714_621_500


class ManualClock:
    """Monotonic seconds that only move when a test says so."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryStore:
    """CachePort double with TTLs on a manual clock and call counters."""

    def __init__(self, clock: ManualClock | None = None) -> None:
        self.clock = clock or ManualClock()
        self._data: dict[str, tuple[bytes, float]] = {}
        self.gets = 0
        self.sets = 0
        self.scans = 0
        self.deletes = 0
        self.fail = False

    def _check(self, op: str) -> None:
        if self.fail:
            raise CacheUnavailable("store down", details={"op": op})

    def _live(self, key: str) -> bytes | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if self.clock() >= expires_at:
            del self._data[key]
            return None
        return raw

    async def get(self, key: str) -> bytes | None:
        self._check("get")
        self.gets += 1
        return self._live(key)

    async def set(self, key: str, value: str | bytes, *, ttl: int) -> None:
        self._check("set")
        if ttl <= 0:
            return
        self.sets += 1
        raw = value.encode("utf-8") if isinstance(value, str) else value
        self._data[key] = (raw, self.clock() + ttl)

    async def set_if_absent(self, key: str, value: str, *, ttl: int) -> bool:
        self._check("set_nx")
        if self._live(key) is not None:
            return False
        self._data[key] = (value.encode("utf-8"), self.clock() + max(ttl, 1))
        return True

    async def delete(self, key: str) -> None:
        self._check("delete")
        self.deletes += 1
        self._data.pop(key, None)

    async def scan(self, pattern: str, *, page_size: int) -> AsyncIterator[str]:
        self._check("scan")
        self.scans += 1
        for key in list(self._data):
            if fnmatch.fnmatchcase(key, pattern) and self._live(key) is not None:
                yield key

    async def ping(self) -> bool:
        return not self.fail

    # Test helpers
    def put_raw(self, key: str, raw: bytes | str, ttl: float = 3600) -> None:
        data = raw.encode("utf-8") if isinstance(raw, str) else raw
        self._data[key] = (data, self.clock() + ttl)

    def keys(self) -> list[str]:
        return [k for k in list(self._data) if self._live(k) is not None]

    def remaining_ttl(self, key: str) -> float | None:
        entry = self._data.get(key)
        return None if entry is None else entry[1] - self.clock()


class FakeGateway:
    """Market data gateway double recording every provider call."""

    def __init__(self) -> None:
        self.latest: dict[str, Quote] = {}
        self.ranges: dict[str, list[Quote]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.error: Exception | None = None

    async def latest_quote(self, symbol: str) -> Quote:
        self.calls.append(("latest_quote", symbol))
        if self.error is not None:
            raise self.error
        try:
            return self.latest[symbol]
        except KeyError:
            raise SymbolNotFound(f"no market data for {symbol}") from None

    async def quote_range(
        self, symbol: str, start: datetime, end: datetime, interval: str
    ) -> list[Quote]:
        self.calls.append(("quote_range", symbol, start, end, interval))
        if self.error is not None:
            raise self.error
        return list(self.ranges.get(symbol, []))


def build_quote(
    symbol: str = "TICK.NS",
    timestamp: int = T0,
    *,
    open: float = 100.0,
    high: float = 105.0,
    low: float = 99.0,
    close: float = 102.0,
    volume: int = 1000,
) -> Quote:
    return Quote(
        symbol=symbol,
        timestamp=timestamp,
        open=open,
        high=high,
        low=low,
        close=close,
        volume=volume,
    )


def build_chart_payload(
    rows: list[tuple[int, Any, Any, Any, Any, Any]],
    *,
    symbol: str = "TICK.NS",
) -> dict[str, Any]:
    """Build a Yahoo chart payload from ``(ts, open, high, low, close, volume)`` rows."""
    return {
        "chart": {
            "result": [
                {
                    "meta": {"symbol": symbol, "currency": "INR"},
                    "timestamp": [r[0] for r in rows],
                    "indicators": {
                        "quote": [
                            {
                                "open": [r[1] for r in rows],
                                "high": [r[2] for r in rows],
                                "low": [r[3] for r in rows],
                                "close": [r[4] for r in rows],
                                "volume": [r[5] for r in rows],
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_quote() -> Callable[..., Quote]:
    return build_quote


@pytest.fixture
def chart_payload() -> Callable[..., dict[str, Any]]:
    return build_chart_payload


@pytest.fixture
def settings() -> Settings:
    """Hermetic settings (no .env file, test environment)."""
    return Settings(_env_file=None, environment=Environment.TEST)  # type: ignore[call-arg]


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture
def async_redis(fake_server: fakeredis.FakeServer) -> fakeredis.aioredis.FakeRedis:
    """Asyncio fake Redis returning bytes, like the production client."""
    return fakeredis.aioredis.FakeRedis(server=fake_server, decode_responses=False)


@pytest.fixture
def sync_redis(fake_server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    """Synchronous view of the same fake server for seeding and assertions."""
    return fakeredis.FakeRedis(server=fake_server, decode_responses=False)
