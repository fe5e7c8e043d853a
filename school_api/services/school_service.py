"""School Service - the single facade the API layer talks to.

Invariants:
    - Reads go to the query repository, writes to the command repository
    - add_school stamps created_at (UTC) and defaults a blank principal name
    - delete_school checks existence on the query side first; an error there is
      returned as-is and the command repository is never called
    - A side this process was not wired with answers Forbidden(OperationNotAvailable)
    - Never raises for expected outcomes: everything comes back as a Result

Design Decisions:
    - Repositories injected as protocols: reader instances pass no command
      repository, tests pass fakes
    - Clock injected so created_at can be pinned in tests
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from school_api.core.domain_types import (
    DEFAULT_PRINCIPAL_NAME, PERIOD_END_MAX, SchoolId, as_utc,
)
from school_api.core.entities import School
from school_api.core.errors import INVALID_DATE_RANGE, OPERATION_NOT_AVAILABLE
from school_api.core.repository_protocols import (
    SchoolCommandRepository, SchoolQueryRepository,
)
from school_api.core.result import Result, forbidden, validation

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def apply_principal_default(principal_name: str | None) -> str:
    """Blank or whitespace-only principal names become DEFAULT_PRINCIPAL_NAME."""
    if principal_name is None or not principal_name.strip():
        return DEFAULT_PRINCIPAL_NAME
    return principal_name


class SchoolService:
    """Command/query facade over the school repositories."""

    def __init__(
        self,
        command_repository: SchoolCommandRepository | None,
        query_repository: SchoolQueryRepository | None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._commands = command_repository
        self._queries = query_repository
        self._clock = clock

    # --- Queries -------------------------------------------------------------

    async def get_school_by_id(self, school_id: SchoolId) -> Result[School]:
        if self._queries is None:
            return _not_available("get_school_by_id")
        return await self._queries.get_by_id(school_id)

    async def get_all_schools(self) -> Result[list[School]]:
        if self._queries is None:
            return _not_available("get_all_schools")
        return await self._queries.get_all()

    async def get_schools_by_date_range(
        self, from_date: datetime, to_date: datetime | None = None,
    ) -> Result[list[School]]:
        """Every version whose period overlaps [from_date, to_date].

        An omitted to_date means "up to now and beyond" (PERIOD_END_MAX).
        """
        if self._queries is None:
            return _not_available("get_schools_by_date_range")
        if to_date is None:
            to_date = PERIOD_END_MAX
        if as_utc(from_date) > as_utc(to_date):
            return validation(
                INVALID_DATE_RANGE,
                f"fromDate {from_date.isoformat()} is after toDate {to_date.isoformat()}",
            )
        return await self._queries.get_by_date_range(from_date, to_date)

    async def get_all_versions_of_school(self, school_id: SchoolId) -> Result[list[School]]:
        if self._queries is None:
            return _not_available("get_all_versions_of_school")
        return await self._queries.get_all_versions(school_id)

    async def get_school_as_of(self, school_id: SchoolId, at: datetime) -> Result[School]:
        if self._queries is None:
            return _not_available("get_school_as_of")
        return await self._queries.get_as_of(school_id, at)

    # --- Commands ------------------------------------------------------------

    async def add_school(self, school: School) -> Result[School]:
        if self._commands is None:
            return _not_available("add_school")
        stamped = replace(
            school,
            created_at=self._clock(),
            principal_name=apply_principal_default(school.principal_name),
        )
        result = await self._commands.add(stamped)
        if result.is_ok:
            logger.info(
                f"School {result.value.id} added",
                extra={"school_id": result.value.id},
            )
        return result

    async def update_school(self, school: School) -> Result[School]:
        if self._commands is None:
            return _not_available("update_school")
        result = await self._commands.update(school)
        if result.is_ok:
            logger.info(
                f"School {school.id} updated to version {result.value.row_version}",
                extra={"school_id": school.id},
            )
        return result

    async def delete_school(self, school_id: SchoolId) -> Result[bool]:
        if self._commands is None or self._queries is None:
            return _not_available("delete_school")
        existing = await self._queries.get_by_id(school_id)
        if existing.is_error:
            return existing
        result = await self._commands.delete(existing.value)
        if result.is_ok:
            logger.info(f"School {school_id} deleted", extra={"school_id": school_id})
        return result


def _not_available(operation: str):
    logger.warning(
        f"Operation {operation} is not wired in this service instance",
        extra={"error_code": OPERATION_NOT_AVAILABLE},
    )
    return forbidden(
        OPERATION_NOT_AVAILABLE,
        f"{operation} is not available on this service instance",
    )
