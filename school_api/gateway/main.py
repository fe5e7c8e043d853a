"""Gateway Application - FastAPI entry point for the routing gateway.

Invariants:
    - The route table is validated before the app exists (misconfiguration
      fails at startup, not on the first request)
    - Every non-health request is resolved, assigned a replica round-robin,
      then proxied; routing errors are rendered by the shared error handlers
    - X-Correlation-ID minted or reused here and passed to the replica

Design Decisions:
    - Separate app from the School API: deployed on its own, no database
    - create_gateway_app(settings, client): tests inject an httpx client over
      MockTransport instead of real replicas
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from school_api import __version__
from school_api.api.error_handlers import register_error_handlers
from school_api.api.middleware import CorrelationIdMiddleware
from school_api.core.domain_types import ServiceType
from school_api.gateway.config import GatewaySettings, get_gateway_settings
from school_api.gateway.proxy import UpstreamProxy
from school_api.gateway.routing import (
    ALL_METHODS, DEFAULT_ROUTES, GatewayRoute, ReplicaPool, RouteTable,
    validate_route_table,
)
from school_api.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: GatewaySettings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    for pool in app.state.pools.values():
        logger.info(
            f"Pool {pool.name}: {len(pool.replicas)} replica(s)",
            extra={"pool": pool.name},
        )
    yield
    await app.state.proxy.aclose()


def create_gateway_app(
    settings: GatewaySettings | None = None,
    client: httpx.AsyncClient | None = None,
    routes: tuple[GatewayRoute, ...] = DEFAULT_ROUTES,
) -> FastAPI:
    settings = settings or get_gateway_settings()
    validate_route_table(routes)

    app = FastAPI(title="School API Gateway", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.route_table = RouteTable(routes)
    app.state.pools = {
        pool: ReplicaPool(pool.value, settings.replicas_for(pool)) for pool in ServiceType
    }
    app.state.proxy = UpstreamProxy(settings.upstream_timeout_seconds, client)

    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/health", include_in_schema=False)
    async def gateway_health():
        """Liveness of the gateway itself, with configured pool sizes."""
        return {
            "status": "healthy",
            "service": "school-api-gateway",
            "pools": {
                pool.value: len(app.state.pools[pool].replicas) for pool in ServiceType
            },
        }

    @app.api_route(
        "/{path:path}", methods=sorted(ALL_METHODS), include_in_schema=False,
    )
    async def route_request(request: Request, path: str):
        match = app.state.route_table.resolve(request.method, request.url.path)
        replica = app.state.pools[match.route.pool].next_replica()
        return await app.state.proxy.forward(request, match, replica)

    register_error_handlers(app)
    return app


app = create_gateway_app()
