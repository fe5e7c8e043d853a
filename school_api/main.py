"""School API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SchoolApiError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - The ServiceTypePolicy is fixed when the app is created and enforced by
      ServiceTypeGateMiddleware on /api/v1/school; databases and the
      SchoolService are built in the lifespan and disposed on shutdown

Design Decisions:
    - create_app(settings) factory: tests and multiple profiles build isolated apps
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers: SchoolApiError (domain), RequestValidationError
      (Pydantic), Exception (catch-all): never leaks internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from school_api import __version__
from school_api.api.error_handlers import register_error_handlers
from school_api.api.middleware import CorrelationIdMiddleware, ServiceTypeGateMiddleware
from school_api.api.routes import health, school
from school_api.config import Settings, get_settings
from school_api.core.service_type import ServiceTypePolicy
from school_api.infrastructure.database import DatabaseManagers, init_databases
from school_api.infrastructure.observability import setup_logging
from school_api.infrastructure.school_command_repository import SqlSchoolCommandRepository
from school_api.infrastructure.school_query_repository import SqlSchoolQueryRepository
from school_api.services.school_service import SchoolService

logger = logging.getLogger(__name__)


def build_school_service(managers: DatabaseManagers) -> SchoolService:
    """Wire repositories onto the managers a profile was given."""
    command = SqlSchoolCommandRepository(managers.command) if managers.command else None
    return SchoolService(
        command_repository=command,
        query_repository=SqlSchoolQueryRepository(managers.query),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    policy: ServiceTypePolicy = app.state.policy
    setup_logging(settings.log_level, settings.log_format)
    managers = init_databases(
        policy,
        command_url=settings.command_database_url,
        query_url=settings.query_database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.auto_create_schema:
        for manager in managers.distinct():
            await manager.create_schema()
    app.state.databases = managers
    app.state.school_service = build_school_service(managers)
    logger.info(
        f"School API started as {policy.service_type.value}",
        extra={"service_type": policy.service_type.value},
    )
    yield
    logger.info("School API shutting down")
    await managers.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="School API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.policy = ServiceTypePolicy(settings.service_type)
    app.state.default_locale = settings.default_locale

    # Innermost: gate answers before routing, inside CORS and correlation ids
    app.add_middleware(
        ServiceTypeGateMiddleware,
        policy=app.state.policy,
        path_prefix=school.router.prefix,
        default_locale=settings.default_locale,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Correlation-ID"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    # Routes: explicit registration
    app.include_router(health.router)
    app.include_router(school.router)

    register_error_handlers(app)
    return app


app = create_app()
