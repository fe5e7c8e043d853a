"""Gateway Proxy - end-to-end through the gateway app to mocked replicas.

Tests:
    - requests land on the right pool with the downstream path and query string
    - replicas are picked round-robin
    - disallowed verbs answered 405 without contacting any replica
    - headers: correlation id propagated, forwarded prefix added, hop-by-hop dropped
    - Location rewritten to the gateway-facing prefix
    - transport failures map to 502 / 504, empty pools to 503
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from school_api.core.errors import (
    METHOD_NOT_ALLOWED, NO_REPLICA_AVAILABLE, ROUTE_NOT_FOUND,
    UPSTREAM_TIMEOUT, UPSTREAM_UNAVAILABLE,
)
from school_api.gateway.config import GatewaySettings
from school_api.gateway.main import create_gateway_app


class FakeReplicas:
    """MockTransport handler that records requests and answers from a script."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.respond = lambda request: httpx.Response(200, json={"ok": True})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


@pytest.fixture
def replicas():
    return FakeReplicas()


@pytest.fixture
def settings():
    return GatewaySettings(
        default_replicas=["http://default-1:8080"],
        reader_replicas=["http://reader-1:8080", "http://reader-2:8080/"],
        writer_replicas=["http://writer-1:8080"],
        upstream_timeout_seconds=2,
    )


@pytest.fixture
async def gateway(settings, replicas):
    upstream = httpx.AsyncClient(transport=httpx.MockTransport(replicas))
    app = create_gateway_app(settings, client=upstream)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://gateway",
    ) as c:
        yield c
    await upstream.aclose()


async def test_reader_get_goes_to_reader_pool(gateway, replicas):
    res = await gateway.get("/api/reader/v1/school/by-date-range?fromDate=2024-01-01")

    assert res.status_code == 200
    sent = replicas.requests[0]
    assert sent.url.host == "reader-1"
    assert sent.url.path == "/api/v1/school/by-date-range"
    assert sent.url.query == b"fromDate=2024-01-01"


async def test_reader_replicas_are_round_robin(gateway, replicas):
    for _ in range(3):
        await gateway.get("/api/reader/v1/school")

    assert [r.url.host for r in replicas.requests] == ["reader-1", "reader-2", "reader-1"]


async def test_writer_post_forwards_body_and_rewrites_location(gateway, replicas):
    replicas.respond = lambda request: httpx.Response(
        201, json={"id": 9}, headers={"Location": "/api/v1/school/9"},
    )

    res = await gateway.post("/api/writer/v1/school", json={"name": "A", "address": "B"})

    assert res.status_code == 201
    assert res.headers["location"] == "/api/writer/v1/school/9"
    sent = replicas.requests[0]
    assert sent.url.host == "writer-1"
    assert sent.method == "POST"
    assert b'"name"' in sent.content


async def test_absolute_location_from_replica_is_rewritten(gateway, replicas):
    replicas.respond = lambda request: httpx.Response(
        201, headers={"Location": "http://writer-1:8080/api/v1/school/9"},
    )

    res = await gateway.post("/api/writer/v1/school", json={})

    assert res.headers["location"] == "/api/writer/v1/school/9"


async def test_default_route_passes_everything_to_default_pool(gateway, replicas):
    await gateway.delete("/api/v1/school/4")

    assert replicas.requests[0].url.host == "default-1"
    assert replicas.requests[0].url.path == "/api/v1/school/4"


@pytest.mark.parametrize("method, path", [
    ("POST", "/api/reader/v1/school"),
    ("DELETE", "/api/reader/v1/school/1"),
    ("GET", "/api/writer/v1/school"),
])
async def test_disallowed_verb_is_405_without_upstream_call(gateway, replicas, method, path):
    res = await gateway.request(method, path)

    assert res.status_code == 405
    assert res.json()["error"]["code"] == METHOD_NOT_ALLOWED
    assert replicas.requests == []


async def test_unknown_path_is_404(gateway, replicas):
    res = await gateway.get("/metrics")

    assert res.status_code == 404
    assert res.json()["error"]["code"] == ROUTE_NOT_FOUND


async def test_headers_forwarded_and_filtered(gateway, replicas):
    await gateway.get(
        "/api/reader/v1/school",
        headers={
            "X-Correlation-ID": "trace-1",
            "X-Api-Client": "mobile",
            "Proxy-Authorization": "secret",
        },
    )

    sent = replicas.requests[0].headers
    assert sent["x-correlation-id"] == "trace-1"
    assert sent["x-api-client"] == "mobile"
    assert sent["x-forwarded-prefix"] == "/api/reader"
    assert sent["x-forwarded-host"] == "gateway"
    assert "proxy-authorization" not in sent
    assert sent["host"] == "reader-1:8080"


async def test_correlation_id_minted_when_missing(gateway, replicas):
    res = await gateway.get("/api/reader/v1/school")

    minted = res.headers["x-correlation-id"]
    assert replicas.requests[0].headers["x-correlation-id"] == minted


async def test_downstream_status_and_body_relayed(gateway, replicas):
    replicas.respond = lambda request: httpx.Response(
        403, json={"error": {"code": "ActionNotAllowedInReaderMode"}},
    )

    res = await gateway.get("/api/reader/v1/school")

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ActionNotAllowedInReaderMode"


async def test_connect_error_is_502(gateway, replicas):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)
    replicas.respond = refuse

    res = await gateway.get("/api/v1/school")

    assert res.status_code == 502
    assert res.json()["error"]["code"] == UPSTREAM_UNAVAILABLE


async def test_timeout_is_504(gateway, replicas):
    def stall(request):
        raise httpx.ReadTimeout("timed out", request=request)
    replicas.respond = stall

    res = await gateway.get("/api/v1/school")

    assert res.status_code == 504
    assert res.json()["error"]["code"] == UPSTREAM_TIMEOUT


async def test_empty_pool_is_503(replicas):
    settings = GatewaySettings(
        default_replicas=["http://default-1:8080"], reader_replicas=[], writer_replicas=[],
    )
    upstream = httpx.AsyncClient(transport=httpx.MockTransport(replicas))
    app = create_gateway_app(settings, client=upstream)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://gateway") as c:
        res = await c.get("/api/reader/v1/school")
    await upstream.aclose()

    assert res.status_code == 503
    assert res.json()["error"]["code"] == NO_REPLICA_AVAILABLE


async def test_gateway_health_reports_pools(gateway, replicas):
    res = await gateway.get("/health")

    assert res.status_code == 200
    assert res.json()["pools"] == {"default": 1, "reader": 2, "writer": 1}
    assert replicas.requests == []
