# tests/unit/infrastructure/caching/test_redis_cache.py
from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from quotecache_api.domain.exceptions.market_data import CacheUnavailable
from quotecache_api.infrastructure.caching.redis_cache import DEFAULT_NAMESPACE, RedisCache


@pytest.mark.asyncio
async def test_set_applies_namespace_and_ttl(async_redis) -> None:
    cache = RedisCache(async_redis, namespace=DEFAULT_NAMESPACE)

    await cache.set("TCS.NS", '{"a":1}', ttl=60)

    raw_key = "quotecache:v1:TCS.NS"
    assert await async_redis.get(raw_key) == b'{"a":1}'
    ttl = await async_redis.ttl(raw_key)
    assert 0 < ttl <= 60
    assert await cache.get("TCS.NS") == b'{"a":1}'


@pytest.mark.asyncio
async def test_get_miss_returns_none(async_redis) -> None:
    assert await RedisCache(async_redis).get("NOPE.NS") is None


@pytest.mark.asyncio
async def test_non_positive_ttl_stores_nothing(async_redis) -> None:
    cache = RedisCache(async_redis)
    await cache.set("TCS.NS", "x", ttl=0)
    assert await cache.get("TCS.NS") is None


@pytest.mark.asyncio
async def test_set_if_absent_only_first_writer_wins(async_redis) -> None:
    cache = RedisCache(async_redis)
    assert await cache.set_if_absent("TCS.NS:lock", "1", ttl=5) is True
    assert await cache.set_if_absent("TCS.NS:lock", "1", ttl=5) is False
    assert 0 < await async_redis.ttl("quotecache:v1:TCS.NS:lock") <= 5


@pytest.mark.asyncio
async def test_delete_removes_namespaced_key(async_redis, sync_redis) -> None:
    cache = RedisCache(async_redis)
    await cache.set_if_absent("TCS.NS:lock", "1", ttl=5)

    await cache.delete("TCS.NS:lock")
    await cache.delete("NEVER.NS:lock")

    assert sync_redis.exists("quotecache:v1:TCS.NS:lock") == 0
    assert await cache.set_if_absent("TCS.NS:lock", "1", ttl=5) is True


@pytest.mark.asyncio
async def test_scan_strips_namespace_and_respects_pattern(async_redis, sync_redis) -> None:
    for key in ("AAA.NS_day", "BBB.NS_day", "AAA.NS", "AAA.NS_2024-05-02"):
        sync_redis.set(f"quotecache:v1:{key}", b"{}")
    sync_redis.set("other:v9:CCC.NS_day", b"{}")

    cache = RedisCache(async_redis)
    found = [k async for k in cache.scan("*.NS_day", page_size=1)]

    assert sorted(set(found)) == ["AAA.NS_day", "BBB.NS_day"]


@pytest.mark.asyncio
async def test_ping(async_redis) -> None:
    assert await RedisCache(async_redis).ping() is True


class _BrokenClient:
    async def get(self, name):
        raise RedisConnectionError("down")

    async def set(self, name, value, *, ex=None, nx=False):
        raise RedisConnectionError("down")

    async def delete(self, *names):
        raise RedisConnectionError("down")

    async def scan_iter(self, match=None, count=None):
        raise RedisConnectionError("down")
        yield  # pragma: no cover

    async def ping(self):
        raise RedisConnectionError("down")

    async def aclose(self):
        return None


@pytest.mark.asyncio
async def test_store_errors_become_cache_unavailable() -> None:
    cache = RedisCache(_BrokenClient())  # type: ignore[arg-type]

    with pytest.raises(CacheUnavailable):
        await cache.get("TCS.NS")
    with pytest.raises(CacheUnavailable):
        await cache.set("TCS.NS", "x", ttl=60)
    with pytest.raises(CacheUnavailable):
        await cache.set_if_absent("TCS.NS:lock", "1", ttl=5)
    with pytest.raises(CacheUnavailable):
        await cache.delete("TCS.NS:lock")
    with pytest.raises(CacheUnavailable):
        [k async for k in cache.scan("*", page_size=10)]
    assert await cache.ping() is False
