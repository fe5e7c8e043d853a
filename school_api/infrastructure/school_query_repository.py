"""School Query Repository - read-only access to current rows and full history.

Invariants:
    - Never mutates: only SELECT statements are issued
    - Nothing is tracked: statements select columns, not ORM instances, so rows
      never enter a session identity map
    - A fresh session per call: a read never sees another request's pending state
    - Full-history reads are current rows UNION ALL school_history, ordered by
      valid_from ascending and by nothing else
    - Empty results are NotFound (GetAll included, for compatibility)
    - Store exceptions are logged and returned as Failure(UnexpectedError)
"""

import logging
from datetime import datetime

from sqlalchemy import Select, select, union_all

from school_api.core.domain_types import SchoolId, as_utc
from school_api.core.entities import School
from school_api.core.errors import (
    NO_SCHOOL_VERSIONS_FOUND, NO_SCHOOLS_FOUND, NO_SCHOOLS_IN_DATE_RANGE,
    SCHOOL_NOT_FOUND, SCHOOL_NOT_FOUND_AT_POINT_IN_TIME, UNEXPECTED_ERROR,
)
from school_api.core.result import Ok, Result, failure, not_found
from school_api.infrastructure.database import DatabaseSessionManager
from school_api.models.school import (
    SchoolHistoryRecord, SchoolRecord, VERSIONED_COLUMNS, school_from_values,
)

logger = logging.getLogger(__name__)


def _current_rows() -> Select:
    table = SchoolRecord.__table__
    return select(*(table.c[key] for key in VERSIONED_COLUMNS))


def _all_versions():
    """Subquery over every version ever stored: the temporal 'ALL' view."""
    history = SchoolHistoryRecord.__table__
    return union_all(
        _current_rows(),
        select(*(history.c[key] for key in VERSIONED_COLUMNS)),
    ).subquery("school_versions")


class SqlSchoolQueryRepository:
    """Reads against the query connection. Implements SchoolQueryRepository."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def get_by_id(self, school_id: SchoolId) -> Result[School]:
        table = SchoolRecord.__table__
        try:
            rows = await self._fetch(_current_rows().where(table.c.id == school_id))
        except Exception as e:
            return _unexpected("get_by_id", e)
        if not rows:
            return not_found(SCHOOL_NOT_FOUND, f"School {school_id} not found")
        return Ok(rows[0])

    async def get_all(self) -> Result[list[School]]:
        table = SchoolRecord.__table__
        try:
            rows = await self._fetch(_current_rows().order_by(table.c.id))
        except Exception as e:
            return _unexpected("get_all", e)
        if not rows:
            return not_found(NO_SCHOOLS_FOUND, "No schools found")
        return Ok(rows)

    async def get_by_date_range(
        self, from_date: datetime, to_date: datetime,
    ) -> Result[list[School]]:
        versions = _all_versions()
        statement = (
            select(versions)
            .where(
                versions.c.valid_from <= as_utc(to_date),
                versions.c.valid_to >= as_utc(from_date),
            )
            .order_by(versions.c.valid_from)
        )
        try:
            rows = await self._fetch(statement)
        except Exception as e:
            return _unexpected("get_by_date_range", e)
        if not rows:
            return not_found(
                NO_SCHOOLS_IN_DATE_RANGE,
                f"No school versions between {from_date.isoformat()} and {to_date.isoformat()}",
            )
        return Ok(rows)

    async def get_all_versions(self, school_id: SchoolId) -> Result[list[School]]:
        versions = _all_versions()
        statement = (
            select(versions)
            .where(versions.c.id == school_id)
            .order_by(versions.c.valid_from)
        )
        try:
            rows = await self._fetch(statement)
        except Exception as e:
            return _unexpected("get_all_versions", e)
        if not rows:
            return not_found(
                NO_SCHOOL_VERSIONS_FOUND, f"No versions found for school {school_id}",
            )
        return Ok(rows)

    async def get_as_of(self, school_id: SchoolId, at: datetime) -> Result[School]:
        """Version of `school_id` whose period contains `at` (valid_from <= at < valid_to)."""
        versions = _all_versions()
        at = as_utc(at)
        statement = (
            select(versions)
            .where(
                versions.c.id == school_id,
                versions.c.valid_from <= at,
                versions.c.valid_to > at,
            )
            .order_by(versions.c.valid_from)
            .limit(1)
        )
        try:
            rows = await self._fetch(statement)
        except Exception as e:
            return _unexpected("get_as_of", e)
        if not rows:
            return not_found(
                SCHOOL_NOT_FOUND_AT_POINT_IN_TIME,
                f"School {school_id} has no version at {at.isoformat()}",
            )
        return Ok(rows[0])

    async def _fetch(self, statement) -> list[School]:
        async with self._db.session() as session:
            result = await session.execute(statement)
            return [school_from_values(row) for row in result.mappings().all()]


def _unexpected(operation: str, exc: Exception):
    logger.error(
        f"School query {operation} failed: {exc}",
        exc_info=True,
        extra={"error_code": UNEXPECTED_ERROR},
    )
    return failure(UNEXPECTED_ERROR, str(exc))
