# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Unit tests for RequestIdMiddleware behavior and header rules."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from quotecache_api.infrastructure.middleware.request_id import (
    _SAFE_RE,
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
)


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/echo")
    def echo(request: Request):
        return {"rid": getattr(request.state, "request_id", None)}

    return app


def test_middleware_generates_uuid_and_sets_state_and_header() -> None:
    r = TestClient(_app()).get("/echo")

    assert r.status_code == 200
    rid = r.json()["rid"]
    assert r.headers.get(REQUEST_ID_HEADER) == rid
    assert _SAFE_RE.match(rid)


def test_middleware_uses_valid_incoming_and_rejects_invalid() -> None:
    client = TestClient(_app())

    valid = "abc-123_456:@Z"
    r1 = client.get("/echo", headers={REQUEST_ID_HEADER: valid})
    assert r1.json()["rid"] == valid
    assert r1.headers.get(REQUEST_ID_HEADER) == valid

    invalid = "bad id with space"
    r2 = client.get("/echo", headers={REQUEST_ID_HEADER: invalid})
    gen = r2.headers.get(REQUEST_ID_HEADER)
    assert gen and gen != invalid
    assert _SAFE_RE.match(gen)
