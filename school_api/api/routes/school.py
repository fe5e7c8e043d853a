"""School Routes - REST surface over the SchoolService facade.

Invariants:
    - Disallowed verbs never reach these handlers (ServiceTypeGateMiddleware
      is scoped to router.prefix)
    - Err results become SchoolApiError exceptions (rendered by error_handlers)
    - POST answers 201 with Location /api/v1/school/{id}; PUT and DELETE answer 204
    - PUT rejects a body id that differs from the path id before calling the service
    - Literal paths (history, by-date-range) are declared before /{school_id}

Design Decisions:
    - Thin routes: mapping DTO <-> entity and Result -> HTTP only, no business rules
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, Response, status

from school_api.api.dependencies import get_school_service
from school_api.core.errors import (
    ErrorContext, InputValidationError, SCHOOL_ID_MISMATCH, error_from_result,
)
from school_api.core.result import Result
from school_api.schemas.school import SchoolCreate, SchoolResponse, SchoolUpdate
from school_api.services.school_service import SchoolService

router = APIRouter(prefix="/api/v1/school", tags=["school"])


def _unwrap(result: Result, school_id: int | None = None):
    """Value of an Ok result; raise the HTTP-facing error for an Err."""
    if result.is_error:
        raise error_from_result(result.error, ErrorContext(school_id=school_id))
    return result.value


@router.get("", response_model=list[SchoolResponse])
async def get_all_schools(service: SchoolService = Depends(get_school_service)):
    """All current schools ordered by id."""
    schools = _unwrap(await service.get_all_schools())
    return [SchoolResponse.from_entity(s) for s in schools]


@router.get("/history/{school_id}", response_model=list[SchoolResponse])
async def get_all_versions_of_school(
    school_id: int, service: SchoolService = Depends(get_school_service),
):
    """Every version of one school, oldest first."""
    versions = _unwrap(await service.get_all_versions_of_school(school_id), school_id)
    return [SchoolResponse.from_entity(s) for s in versions]


@router.get("/by-date-range", response_model=list[SchoolResponse])
async def get_schools_by_date_range(
    from_date: datetime = Query(alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
    service: SchoolService = Depends(get_school_service),
):
    """Versions whose validity period overlaps [fromDate, toDate]."""
    versions = _unwrap(await service.get_schools_by_date_range(from_date, to_date))
    return [SchoolResponse.from_entity(s) for s in versions]


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school_by_id(
    school_id: int, service: SchoolService = Depends(get_school_service),
):
    school = _unwrap(await service.get_school_by_id(school_id), school_id)
    return SchoolResponse.from_entity(school)


@router.get("/{school_id}/as-of", response_model=SchoolResponse)
async def get_school_as_of(
    school_id: int,
    at: datetime = Query(),
    service: SchoolService = Depends(get_school_service),
):
    """The version of a school that was current at `at`."""
    school = _unwrap(await service.get_school_as_of(school_id, at), school_id)
    return SchoolResponse.from_entity(school)


@router.post("", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
async def add_school(
    body: SchoolCreate,
    request: Request,
    response: Response,
    service: SchoolService = Depends(get_school_service),
):
    school = _unwrap(await service.add_school(body.to_entity()))
    response.headers["Location"] = request.app.url_path_for(
        "get_school_by_id", school_id=str(school.id),
    )
    return SchoolResponse.from_entity(school)


@router.put("/{school_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def update_school(
    school_id: int,
    body: SchoolUpdate,
    service: SchoolService = Depends(get_school_service),
):
    if body.id != school_id:
        raise InputValidationError(
            SCHOOL_ID_MISMATCH,
            f"Path id {school_id} does not match body id {body.id}",
            ErrorContext(school_id=school_id),
        )
    _unwrap(await service.update_school(body.to_entity()), school_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{school_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_school(
    school_id: int, service: SchoolService = Depends(get_school_service),
):
    _unwrap(await service.delete_school(school_id), school_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
