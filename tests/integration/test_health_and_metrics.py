# tests/integration/test_health_and_metrics.py
from __future__ import annotations

from fastapi.testclient import TestClient

from quotecache_api.dependencies.market_data import get_cache_store
from quotecache_api.main import GREETING, create_app


class _DeadStore:
    async def ping(self) -> bool:
        return False


def test_root_greeting_and_liveness(settings, async_redis) -> None:
    with TestClient(create_app(settings, redis_client=async_redis)) as c:
        r = c.get("/")
        assert r.status_code == 200
        assert r.text == GREETING

        r = c.get("/healthz")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}


def test_readiness_reflects_store_ping(settings, async_redis) -> None:
    app = create_app(settings, redis_client=async_redis)
    with TestClient(app) as c:
        ok = c.get("/readyz")
        assert ok.status_code == 200
        assert ok.json()["status"] == "ok"
        assert ok.json()["checks"][0]["name"] == "redis"

        app.dependency_overrides[get_cache_store] = lambda: _DeadStore()
        down = c.get("/readyz")
        assert down.status_code == 503
        assert down.json()["status"] == "degraded"
        assert down.json()["checks"][0]["status"] == "down"


def test_metrics_exposition(settings, async_redis) -> None:
    with TestClient(create_app(settings, redis_client=async_redis)) as c:
        r = c.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "quotecache_readyz_redis_latency_seconds_bucket" in r.text
