"""ASGI Middleware - correlation ids and the service-type gate.

Invariants:
    - Every HTTP response carries X-Correlation-ID
    - A client-supplied id is reused when it is a short printable token;
      otherwise a UUID4 is generated
    - The id lives in a ContextVar for the request duration and is reset after
    - The service-type gate answers before routing, so a disallowed verb gets
      403 whatever its body, query string or path parameters look like
    - Gate rejections use the same error envelope as the exception handlers

Design Decisions:
    - Pure ASGI over BaseHTTPMiddleware: no response buffering, works with
      streamed proxy responses in the gateway
"""

import logging
import re
import uuid
from typing import Any, Callable

from fastapi.responses import JSONResponse

from school_api.core.errors import ServiceTypeForbiddenError
from school_api.core.language_strings import DEFAULT_LOCALE, Locale, localize, resolve_locale
from school_api.core.service_type import ServiceTypePolicy
from school_api.infrastructure.observability import correlation_id_ctx, get_correlation_id

logger = logging.getLogger(__name__)

_HEADER = b"x-correlation-id"
_ACCEPT_LANGUAGE = b"accept-language"
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _extract_header(headers: list[tuple[bytes, bytes]], name: bytes) -> str:
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


def resolve_correlation_id(candidate: str | None) -> str:
    """Reuse a well-formed client id, mint a new one otherwise."""
    if candidate and _VALID_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Pure ASGI middleware propagating X-Correlation-ID."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = resolve_correlation_id(
            _extract_header(scope.get("headers", []), _HEADER),
        )
        token = correlation_id_ctx.set(correlation_id)

        async def send_with_correlation_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    (k, v) for k, v in message.get("headers", []) if k.lower() != _HEADER
                ]
                headers.append((_HEADER, correlation_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation_id)
        finally:
            correlation_id_ctx.reset(token)


class ServiceTypeGateMiddleware:
    """Pure ASGI gate: 403 for verbs this instance's SERVICE_TYPE does not serve.

    Only paths at or below `path_prefix` are gated; health probes and docs pass.
    """

    def __init__(
        self,
        app: Any,
        policy: ServiceTypePolicy,
        path_prefix: str,
        default_locale: Locale = DEFAULT_LOCALE,
    ) -> None:
        self.app = app
        self.policy = policy
        self.path_prefix = path_prefix.rstrip("/")
        self.default_locale = default_locale

    def _gated(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or not self._gated(scope["path"]):
            await self.app(scope, receive, send)
            return

        error = self.policy.check(scope["method"])
        if error is None:
            await self.app(scope, receive, send)
            return

        logger.warning(
            f"Rejected {scope['method']} {scope['path']} "
            f"in {self.policy.service_type.value} mode",
            extra={
                "service_type": self.policy.service_type.value,
                "method": scope["method"],
                "path": scope["path"],
                "error_code": error.code,
                "status_code": 403,
            },
        )
        exc = ServiceTypeForbiddenError(error.code, error.description)
        exc.context.correlation_id = get_correlation_id() or None
        locale = resolve_locale(
            _extract_header(scope.get("headers", []), _ACCEPT_LANGUAGE) or None,
            self.default_locale,
        )
        response = JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(localize(exc.code, locale)),
        )
        await response(scope, receive, send)
