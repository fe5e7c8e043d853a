"""Error Hierarchy - typed, categorized exceptions raised at the HTTP boundary.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Codes are stable and double as localization keys
    - Result errors (core/result.py) become exceptions only in the API layer,
      via error_from_result()
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SchoolApiError base: one FastAPI handler renders all of them
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from school_api.core.domain_types import ErrorKind
from school_api.core.result import Error


# --- Error codes -------------------------------------------------------------

SCHOOL_NOT_FOUND = "SchoolNotFound"
SCHOOL_NOT_FOUND_AT_POINT_IN_TIME = "SchoolNotFoundAtPointInTime"
NO_SCHOOLS_FOUND = "NoSchoolsFound"
NO_SCHOOLS_IN_DATE_RANGE = "NoSchoolsInDateRange"
NO_SCHOOL_VERSIONS_FOUND = "NoSchoolVersionsFound"
FAILED_TO_ADD_SCHOOL = "FailedToAddSchool"
FAILED_TO_UPDATE_SCHOOL = "FailedToUpdateSchool"
FAILED_TO_DELETE_SCHOOL = "FailedToDeleteSchool"
SCHOOL_VERSION_CONFLICT = "SchoolVersionConflict"
SCHOOL_ID_MISMATCH = "SchoolIdMismatch"
INVALID_DATE_RANGE = "InvalidDateRange"
UNEXPECTED_ERROR = "UnexpectedError"
OPERATION_NOT_AVAILABLE = "OperationNotAvailable"
NOT_ALLOWED_IN_READER_MODE = "ActionNotAllowedInReaderMode"
NOT_ALLOWED_IN_WRITER_MODE = "ActionNotAllowedInWriterMode"
VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
DATABASE_ERROR = "DATABASE_ERROR"
ROUTE_NOT_FOUND = "RouteNotFound"
METHOD_NOT_ALLOWED = "MethodNotAllowed"
NO_REPLICA_AVAILABLE = "NoReplicaAvailable"
UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    DATABASE = "database"
    GATEWAY = "gateway"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str | None = None
    school_id: int | None = None
    debug_info: dict[str, Any] | None = None


class SchoolApiError(Exception):
    """Base exception for all School API errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self, message: str | None = None) -> dict:
        """Convert to standardized REST error response.

        `message` overrides the default text, e.g. with a localized one.
        """
        return {
            "error": {
                "code": self.code,
                "message": message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "correlation_id": self.context.correlation_id,
            }
        }


# --- Domain Errors (400-level) -----------------------------------------------

class ResourceNotFoundError(SchoolApiError):
    """Requested school (or version of it) does not exist."""
    def __init__(self, code: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class OperationFailedError(SchoolApiError):
    """A mutation affected zero rows or the store reported a failure."""
    def __init__(self, code: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class InputValidationError(SchoolApiError):
    """Request shape rejected before reaching a repository."""
    def __init__(self, code: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class ServiceTypeForbiddenError(SchoolApiError):
    """Request verb not served by this instance's service type."""
    def __init__(self, code: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class ConcurrencyError(SchoolApiError):
    """Concurrent modification detected."""
    def __init__(
        self,
        message: str,
        code: str = SCHOOL_VERSION_CONFLICT,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# --- Infrastructure Errors (500-level) ---------------------------------------

class DatabaseError(SchoolApiError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            DATABASE_ERROR, ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class UnexpectedError(SchoolApiError):
    """Result carried an error kind with no better mapping."""
    def __init__(self, code: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


# --- Gateway Errors ----------------------------------------------------------

class RouteNotFoundError(SchoolApiError):
    """No gateway route matches the upstream path."""
    def __init__(self, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"No route configured for '{path}'",
            ROUTE_NOT_FOUND, ErrorCategory.GATEWAY,
            ErrorSeverity.WARNING, context, 404,
        )


class GatewayMethodNotAllowedError(SchoolApiError):
    """Path matched a route that does not accept the request verb."""
    def __init__(self, method: str, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"Method {method} is not routed for '{path}'",
            METHOD_NOT_ALLOWED, ErrorCategory.GATEWAY,
            ErrorSeverity.WARNING, context, 405,
        )


class NoReplicaAvailableError(SchoolApiError):
    """Target pool has no replicas configured."""
    def __init__(self, pool: str, context: ErrorContext | None = None):
        super().__init__(
            f"No replica available in pool '{pool}'",
            NO_REPLICA_AVAILABLE, ErrorCategory.GATEWAY,
            ErrorSeverity.CRITICAL, context, 503,
        )


class UpstreamUnavailableError(SchoolApiError):
    """Downstream replica could not be reached."""
    def __init__(self, upstream: str, context: ErrorContext | None = None):
        super().__init__(
            f"Upstream '{upstream}' is unavailable",
            UPSTREAM_UNAVAILABLE, ErrorCategory.GATEWAY,
            ErrorSeverity.CRITICAL, context, 502,
        )


class UpstreamTimeoutError(SchoolApiError):
    """Downstream replica did not answer in time."""
    def __init__(self, upstream: str, context: ErrorContext | None = None):
        super().__init__(
            f"Upstream '{upstream}' timed out",
            UPSTREAM_TIMEOUT, ErrorCategory.GATEWAY,
            ErrorSeverity.CRITICAL, context, 504,
        )


class GatewayConfigurationError(Exception):
    """Route table is inconsistent with the service-type policy. Raised at startup."""


# --- Result -> exception mapping ---------------------------------------------

_ERROR_BY_KIND: dict[ErrorKind, type[SchoolApiError]] = {
    ErrorKind.NOT_FOUND: ResourceNotFoundError,
    ErrorKind.FAILURE: OperationFailedError,
    ErrorKind.VALIDATION: InputValidationError,
    ErrorKind.FORBIDDEN: ServiceTypeForbiddenError,
    ErrorKind.UNEXPECTED: UnexpectedError,
}


def error_from_result(error: Error, context: ErrorContext | None = None) -> SchoolApiError:
    """Build the HTTP-facing exception for a result error."""
    message = error.description or error.code
    if error.kind == ErrorKind.CONFLICT:
        return ConcurrencyError(message, error.code, context)
    error_class = _ERROR_BY_KIND.get(error.kind, UnexpectedError)
    return error_class(error.code, message, context)
