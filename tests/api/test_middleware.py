"""Correlation Id Middleware - X-Correlation-ID minted, reused and echoed."""

import uuid

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from school_api.api.middleware import CorrelationIdMiddleware, resolve_correlation_id
from school_api.infrastructure.observability import get_correlation_id


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/echo")
    async def echo():
        return {"correlation_id": get_correlation_id()}

    return app


async def _get(headers=None):
    async with AsyncClient(
        transport=ASGITransport(app=_make_app()), base_url="http://test",
    ) as c:
        return await c.get("/echo", headers=headers or {})


async def test_generates_id_when_missing():
    res = await _get()

    generated = res.headers["x-correlation-id"]
    assert uuid.UUID(generated)
    assert res.json()["correlation_id"] == generated


async def test_reuses_client_id():
    res = await _get({"X-Correlation-ID": "order-7f3a"})

    assert res.headers["x-correlation-id"] == "order-7f3a"
    assert res.json()["correlation_id"] == "order-7f3a"


async def test_context_is_reset_after_request():
    await _get({"X-Correlation-ID": "order-7f3a"})

    assert get_correlation_id() == ""


def test_malformed_ids_are_replaced():
    assert resolve_correlation_id("bad id with spaces") != "bad id with spaces"
    assert resolve_correlation_id("x" * 200) != "x" * 200
    assert resolve_correlation_id("abc-123") == "abc-123"
