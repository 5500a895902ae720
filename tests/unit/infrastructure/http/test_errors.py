# tests/unit/infrastructure/http/test_errors.py
from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.testclient import TestClient

from quotecache_api.domain.exceptions.base import ClientError, ServerError
from quotecache_api.infrastructure.http import errors


def test_error_envelope_includes_optional_fields() -> None:
    payload = errors.error_envelope(
        code="SOME_CODE",
        http_status=418,
        message="I'm a teapot",
        details={"extra": "info"},
        trace_id="trace-123",
    )

    err = payload["error"]
    assert err == {
        "code": "SOME_CODE",
        "http_status": 418,
        "message": "I'm a teapot",
        "details": {"extra": "info"},
        "trace_id": "trace-123",
    }


def test_error_envelope_omits_absent_optional_fields() -> None:
    err = errors.error_envelope(code="X", http_status=500, message="m")["error"]
    assert "details" not in err
    assert "trace_id" not in err


def _make_app() -> FastAPI:
    app = FastAPI()
    errors.install_exception_handlers(app)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.request_id = "req-xyz"
        return await call_next(request)

    @app.get("/needs-q")
    async def needs_q(q: int = Query(...)) -> dict[str, int]:
        return {"q": q}

    @app.get("/http-exc")
    async def http_exc() -> None:
        raise HTTPException(status_code=404, detail="not found")

    @app.get("/client-error")
    async def client_error() -> None:
        raise ClientError("bad date", code="INVALID_REQUEST", details={"date": "2024-13-40"})

    @app.get("/server-error")
    async def server_error() -> None:
        raise ServerError("provider down", code="UPSTREAM_UNAVAILABLE", http_status=502)

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaboom")

    return app


def test_validation_error_is_enveloped_422() -> None:
    r = TestClient(_make_app()).get("/needs-q")
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert err["trace_id"] == "req-xyz"
    assert err["details"]["errors"]


def test_http_exception_is_enveloped() -> None:
    r = TestClient(_make_app()).get("/http-exc")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "HTTP_ERROR"
    assert r.json()["error"]["message"] == "not found"


def test_boundary_errors_keep_their_status_and_code() -> None:
    client = TestClient(_make_app())

    r = client.get("/client-error")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_REQUEST"
    assert r.json()["error"]["details"] == {"date": "2024-13-40"}

    r = client.get("/server-error")
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "UPSTREAM_UNAVAILABLE"


def test_unhandled_exception_is_internal_error() -> None:
    r = TestClient(_make_app(), raise_server_exceptions=False).get("/boom")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "INTERNAL_ERROR"
