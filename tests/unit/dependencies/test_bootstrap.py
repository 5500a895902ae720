# tests/unit/dependencies/test_bootstrap.py
from __future__ import annotations

import httpx
import pytest

from quotecache_api.application.services.quote_service import QuoteService
from quotecache_api.dependencies.core import bootstrap as bootstrap_module
from quotecache_api.dependencies.core.bootstrap import bootstrap, load_yahoo_settings
from quotecache_api.infrastructure.caching.redis_cache import RedisCache


@pytest.mark.asyncio
async def test_bootstrap_wires_service_and_closes_http_client(settings, async_redis) -> None:
    async with bootstrap(settings=settings, redis_client=async_redis) as state:
        assert isinstance(state.quote_service, QuoteService)
        assert isinstance(state.store, RedisCache)
        assert await state.store.ping() is True
        http_client = state.http_client
        assert not http_client.is_closed

    assert http_client.is_closed
    # Injected Redis clients are left open for their owner.
    assert await async_redis.ping()


@pytest.mark.asyncio
async def test_bootstrap_closes_owned_redis_client(
    settings, async_redis, monkeypatch: pytest.MonkeyPatch
) -> None:
    closed: list[object] = []

    async def fake_close(client) -> None:
        closed.append(client)

    monkeypatch.setattr(bootstrap_module, "create_redis_client", lambda s: async_redis)
    monkeypatch.setattr(bootstrap_module, "close_redis_client", fake_close)

    transport = httpx.MockTransport(lambda r: httpx.Response(200))
    async with bootstrap(settings=settings, http_transport=transport):
        pass

    assert closed == [async_redis]


def test_yahoo_settings_projection(settings) -> None:
    yahoo = load_yahoo_settings(settings)
    assert yahoo.base_url == settings.yahoo_base_url
    assert yahoo.chart_url.endswith("/v8/finance/chart")
