"""Gateway Routing - route table, most-specific-prefix matching and replica pools.

Invariants:
    - Routes are tried longest upstream prefix first; only the first path
      match is considered, so a verb it does not allow is a 405 and never
      falls through to a broader route
    - A prefix matches on segment boundaries: /api/reader matches
      /api/reader/v1/school, never /api/readers
    - A route never targets a pool whose service type would reject its verbs
      (validate_route_table, using the same is_method_allowed as the instances)
    - ReplicaPool cycles through its replicas in order; an empty pool raises

Design Decisions:
    - Pure data + pure functions, no IO: the proxy does the network part
    - itertools.count for the round-robin cursor: no lock needed on one event loop
"""

import itertools
from dataclasses import dataclass

from school_api.core.domain_types import ServiceType
from school_api.core.errors import (
    GatewayConfigurationError, GatewayMethodNotAllowedError,
    NoReplicaAvailableError, RouteNotFoundError,
)
from school_api.core.service_type import is_method_allowed


@dataclass(frozen=True)
class GatewayRoute:
    """Upstream path prefix + verbs -> pool and downstream prefix."""
    upstream_prefix: str
    methods: frozenset[str]
    pool: ServiceType
    downstream_prefix: str

    def matches_path(self, path: str) -> bool:
        prefix = self.upstream_prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")

    def allows(self, method: str) -> bool:
        return method.upper() in self.methods

    def downstream_path(self, path: str) -> str:
        remainder = path[len(self.upstream_prefix.rstrip("/")):]
        return self.downstream_prefix.rstrip("/") + remainder

    def upstream_path(self, downstream_path: str) -> str | None:
        """Map a downstream path back to the gateway-facing one, if it is ours."""
        prefix = self.downstream_prefix.rstrip("/")
        if downstream_path != prefix and not downstream_path.startswith(prefix + "/"):
            return None
        return self.upstream_prefix.rstrip("/") + downstream_path[len(prefix):]


ALL_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})

DEFAULT_ROUTES: tuple[GatewayRoute, ...] = (
    GatewayRoute("/api/reader", frozenset({"GET"}), ServiceType.READER, "/api"),
    GatewayRoute(
        "/api/writer", frozenset({"POST", "PUT", "DELETE"}), ServiceType.WRITER, "/api",
    ),
    GatewayRoute("/api", ALL_METHODS, ServiceType.DEFAULT, "/api"),
)


@dataclass(frozen=True)
class RouteMatch:
    route: GatewayRoute
    downstream_path: str


class RouteTable:
    """Resolves (method, path) to a route."""

    def __init__(self, routes: tuple[GatewayRoute, ...] | list[GatewayRoute] = DEFAULT_ROUTES):
        self.routes = tuple(
            sorted(routes, key=lambda r: len(r.upstream_prefix.rstrip("/")), reverse=True),
        )

    def resolve(self, method: str, path: str) -> RouteMatch:
        for route in self.routes:
            if not route.matches_path(path):
                continue
            if not route.allows(method):
                raise GatewayMethodNotAllowedError(method.upper(), path)
            return RouteMatch(route, route.downstream_path(path))
        raise RouteNotFoundError(path)


def validate_route_table(routes) -> None:
    """Raise GatewayConfigurationError if any route sends a verb to a pool that rejects it."""
    seen: set[str] = set()
    for route in routes:
        prefix = route.upstream_prefix.rstrip("/")
        if not route.upstream_prefix.startswith("/"):
            raise GatewayConfigurationError(
                f"Upstream prefix '{route.upstream_prefix}' must start with '/'",
            )
        if prefix in seen:
            raise GatewayConfigurationError(f"Duplicate upstream prefix '{prefix}'")
        seen.add(prefix)
        if not route.methods:
            raise GatewayConfigurationError(f"Route '{prefix}' allows no methods")
        rejected = sorted(m for m in route.methods if not is_method_allowed(route.pool, m))
        if rejected:
            raise GatewayConfigurationError(
                f"Route '{prefix}' sends {', '.join(rejected)} to the "
                f"{route.pool.value} pool, which rejects them",
            )


class ReplicaPool:
    """Round-robin over the base URLs of one service type's replicas."""

    def __init__(self, name: str, replicas: list[str]):
        self.name = name
        self.replicas = tuple(replicas)
        self._cursor = itertools.count()

    def next_replica(self) -> str:
        if not self.replicas:
            raise NoReplicaAvailableError(self.name)
        return self.replicas[next(self._cursor) % len(self.replicas)]
