"""Service-Type Policy - which HTTP verbs an instance serves, per deployment profile.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - reader rejects write verbs, writer rejects read verbs, default rejects nothing
    - check() returns an Error on violation, None on success
    - The same is_method_allowed() backs the in-process gate and the gateway
      route-table validation, so the two can never disagree

Design Decisions:
    - ServiceTypePolicy is a frozen value built once at startup and injected via
      app.state, never re-read from the environment per request
"""

from dataclasses import dataclass

from school_api.core.domain_types import (
    ErrorKind, ServiceType, READ_METHODS, WRITE_METHODS,
)
from school_api.core.errors import NOT_ALLOWED_IN_READER_MODE, NOT_ALLOWED_IN_WRITER_MODE
from school_api.core.result import Error


def is_method_allowed(service_type: ServiceType, method: str) -> bool:
    """True when an instance of `service_type` may serve `method`."""
    verb = method.upper()
    if service_type == ServiceType.READER:
        return verb not in WRITE_METHODS
    if service_type == ServiceType.WRITER:
        return verb not in READ_METHODS
    return True


@dataclass(frozen=True)
class ServiceTypePolicy:
    """Deployment-time capability gate for School routes."""
    service_type: ServiceType = ServiceType.DEFAULT

    def check(self, method: str) -> Error | None:
        """Return a Forbidden error if this instance must not serve `method`."""
        if is_method_allowed(self.service_type, method):
            return None
        if self.service_type == ServiceType.READER:
            return Error(
                ErrorKind.FORBIDDEN, NOT_ALLOWED_IN_READER_MODE,
                f"{method.upper()} is not allowed in reader mode",
            )
        return Error(
            ErrorKind.FORBIDDEN, NOT_ALLOWED_IN_WRITER_MODE,
            f"{method.upper()} is not allowed in writer mode",
        )

    @property
    def wires_command_repository(self) -> bool:
        return self.service_type != ServiceType.READER
