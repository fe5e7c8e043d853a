"""Error Handlers - global exception handlers for the School API and gateway.

Invariants:
    - SchoolApiError -> structured JSON with code, localized message, severity,
      correlation id
    - RequestValidationError -> 400 with field-level error details
    - Exception (catch-all) -> 500, never leaks internal details

Design Decisions:
    - Three-layer handler: domain (SchoolApiError), validation (Pydantic), catch-all (Exception)
    - Messages localized from the error code and Accept-Language; codes without
      a translation keep the exception's own message
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from school_api.core.errors import (
    ErrorSeverity, INTERNAL_ERROR, SchoolApiError, VALIDATION_ERROR,
)
from school_api.core.language_strings import DEFAULT_LOCALE, Locale, localize, resolve_locale
from school_api.infrastructure.observability import get_correlation_id

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_school_api_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def request_locale(request: Request) -> Locale:
    """Locale for user-facing text: Accept-Language, then the app default."""
    default = getattr(request.app.state, "default_locale", DEFAULT_LOCALE)
    return resolve_locale(request.headers.get("accept-language"), default)


def _register_school_api_error_handler(app: FastAPI) -> None:
    """Register domain/infrastructure error handler."""

    @app.exception_handler(SchoolApiError)
    async def school_api_error_handler(request: Request, exc: SchoolApiError):
        """Handle all School API domain/infrastructure errors."""
        if exc.context.correlation_id is None:
            exc.context.correlation_id = get_correlation_id() or None
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "method": request.method,
                "status_code": exc.http_status,
            },
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(localize(exc.code, request_locale(request))),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": VALIDATION_ERROR, "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc, request_locale(request)),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"error_code": INTERNAL_ERROR, "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": INTERNAL_ERROR,
                    "message": localize(INTERNAL_ERROR, request_locale(request)),
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError, locale: Locale) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": VALIDATION_ERROR,
            "message": localize(VALIDATION_ERROR, locale),
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "correlation_id": get_correlation_id() or None,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
