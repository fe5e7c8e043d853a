"""API Dependencies - FastAPI dependencies shared by the School routes.

Invariants:
    - The SchoolService comes from app.state (built in the lifespan)
    - Service-type gating is not a dependency: ServiceTypeGateMiddleware
      answers disallowed verbs before the body is read
"""

from fastapi import Request

from school_api.core.errors import DatabaseError
from school_api.services.school_service import SchoolService


def get_school_service(request: Request) -> SchoolService:
    service = getattr(request.app.state, "school_service", None)
    if service is None:
        raise DatabaseError("School service is not initialized", "startup")
    return service
