"""Upstream Proxy - forwards a resolved request to one replica over httpx.

Invariants:
    - Method, query string, body and end-to-end headers are forwarded unchanged
    - Hop-by-hop headers, Host and Content-Length are never forwarded
    - X-Correlation-ID always sent downstream (the gateway's current id)
    - X-Forwarded-Prefix / X-Forwarded-Host describe the gateway-facing request
    - Location headers are mapped back to the gateway-facing prefix
    - Transport errors -> UpstreamUnavailableError (502); timeouts -> UpstreamTimeoutError (504)

Design Decisions:
    - One AsyncClient per gateway, created lazily or injected (tests pass a
      client over httpx.MockTransport); closed in the gateway lifespan
    - Response bodies are read whole: School payloads are small JSON documents
"""

import logging
from urllib.parse import urlsplit

import httpx
from fastapi import Request, Response

from school_api.core.errors import UpstreamTimeoutError, UpstreamUnavailableError
from school_api.gateway.routing import RouteMatch
from school_api.infrastructure.observability import CORRELATION_ID_HEADER, get_correlation_id

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset({
    "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailer", "trailers", "transfer-encoding", "upgrade",
})
_REQUEST_DROPPED = HOP_BY_HOP_HEADERS | {"host", "content-length", "x-correlation-id"}
_RESPONSE_DROPPED = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding", "x-correlation-id"}


def forward_headers(request: Request, match: RouteMatch) -> list[tuple[str, str]]:
    """Headers to send downstream for `request`."""
    headers = [
        (key, value) for key, value in request.headers.items()
        if key.lower() not in _REQUEST_DROPPED
    ]
    headers.append((CORRELATION_ID_HEADER, get_correlation_id()))
    headers.append(("X-Forwarded-Prefix", match.route.upstream_prefix.rstrip("/")))
    if request.headers.get("host"):
        headers.append(("X-Forwarded-Host", request.headers["host"]))
    return headers


def rewrite_location(location: str, match: RouteMatch, replica: str) -> str:
    """Map a downstream Location back onto the gateway-facing prefix."""
    path = location
    if location.startswith(replica):
        path = location[len(replica):] or "/"
    elif urlsplit(location).scheme:
        return location
    upstream = match.route.upstream_path(path)
    return upstream if upstream is not None else location


class UpstreamProxy:
    """Sends requests to replicas and relays their responses."""

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self._timeout = timeout
        self._external_client = client is not None
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def forward(self, request: Request, match: RouteMatch, replica: str) -> Response:
        url = replica + match.downstream_path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        try:
            upstream = await self._get_client().request(
                request.method,
                url,
                headers=forward_headers(request, match),
                content=await request.body(),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(
                f"Upstream timeout {request.method} {url}: {e}",
                extra={"upstream": replica, "pool": match.route.pool.value},
            )
            raise UpstreamTimeoutError(replica)
        except httpx.TransportError as e:
            logger.error(
                f"Upstream unavailable {request.method} {url}: {e}",
                extra={"upstream": replica, "pool": match.route.pool.value},
            )
            raise UpstreamUnavailableError(replica)

        logger.info(
            f"{request.method} {request.url.path} -> {url} [{upstream.status_code}]",
            extra={
                "method": request.method,
                "path": request.url.path,
                "pool": match.route.pool.value,
                "upstream": replica,
                "status_code": upstream.status_code,
            },
        )
        headers = {
            key: value for key, value in upstream.headers.items()
            if key.lower() not in _RESPONSE_DROPPED
        }
        if "location" in headers:
            headers["location"] = rewrite_location(headers["location"], match, replica)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=headers,
        )

    async def aclose(self) -> None:
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None
