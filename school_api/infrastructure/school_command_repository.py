"""School Command Repository - add/update/delete, one unit of work per call.

Invariants:
    - Each operation acquires its own session and releases it on every exit path
    - Records are expunged before the session closes; callers get untracked entities
    - Update copies name, address, principal_name only (never id, never created_at)
    - Expected outcomes are returned as Result values; any exception raised by the
      store is logged and converted to Failure(UnexpectedError) carrying its message
    - History rows are never written here (infrastructure/temporal.py does that)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from school_api.core.entities import School
from school_api.core.errors import (
    ConcurrencyError,
    FAILED_TO_ADD_SCHOOL, FAILED_TO_DELETE_SCHOOL, FAILED_TO_UPDATE_SCHOOL,
    SCHOOL_NOT_FOUND, SCHOOL_VERSION_CONFLICT, UNEXPECTED_ERROR,
)
from school_api.core.result import Ok, Result, conflict, failure, not_found
from school_api.infrastructure.database import DatabaseSessionManager
from school_api.infrastructure.temporal import utc_now
from school_api.models.school import SchoolRecord, record_values, school_from_values

logger = logging.getLogger(__name__)


class SqlSchoolCommandRepository:
    """Writes against the command connection. Implements SchoolCommandRepository."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def add(self, school: School) -> Result[School]:
        try:
            async with self._db.session() as session:
                record = SchoolRecord(
                    name=school.name,
                    address=school.address,
                    principal_name=school.principal_name,
                    created_at=school.created_at or utc_now(),
                )
                session.add(record)
                await session.commit()
                if record.id is None:
                    return failure(FAILED_TO_ADD_SCHOOL, "Insert affected no rows")
                return Ok(_detach(session, record))
        except Exception as e:
            return _unexpected("add", school, e)

    async def update(self, school: School) -> Result[School]:
        try:
            async with self._db.session() as session:
                record = await session.get(SchoolRecord, school.id)
                if record is None:
                    return not_found(SCHOOL_NOT_FOUND, f"School {school.id} not found")
                if school.row_version is not None and school.row_version != record.row_version:
                    session.expunge(record)
                    return conflict(
                        SCHOOL_VERSION_CONFLICT,
                        f"School {school.id} is at version {record.row_version}, "
                        f"not {school.row_version}",
                    )

                record.name = school.name
                record.address = school.address
                record.principal_name = school.principal_name

                if not session.is_modified(record):
                    session.expunge(record)
                    return failure(FAILED_TO_UPDATE_SCHOOL, "Update affected no rows")
                await session.commit()
                return Ok(_detach(session, record))
        except ConcurrencyError as e:
            logger.warning(
                f"Concurrent update of school {school.id}: {e.message}",
                extra={"school_id": school.id, "error_code": SCHOOL_VERSION_CONFLICT},
            )
            return conflict(SCHOOL_VERSION_CONFLICT, e.message)
        except Exception as e:
            return _unexpected("update", school, e)

    async def delete(self, school: School) -> Result[bool]:
        try:
            async with self._db.session() as session:
                record = await session.get(SchoolRecord, school.id)
                if record is None:
                    return not_found(SCHOOL_NOT_FOUND, f"School {school.id} not found")
                await session.delete(record)
                await session.commit()
                return Ok(True)
        except ConcurrencyError as e:
            logger.warning(
                f"School {school.id} changed while deleting: {e.message}",
                extra={"school_id": school.id, "error_code": FAILED_TO_DELETE_SCHOOL},
            )
            return failure(FAILED_TO_DELETE_SCHOOL, e.message)
        except Exception as e:
            return _unexpected("delete", school, e)


def _detach(session: AsyncSession, record: SchoolRecord) -> School:
    school = school_from_values(record_values(record))
    session.expunge(record)
    return school


def _unexpected(operation: str, school: School, exc: Exception):
    logger.error(
        f"School {operation} failed: {exc}",
        exc_info=True,
        extra={"school_id": school.id, "error_code": UNEXPECTED_ERROR},
    )
    return failure(UNEXPECTED_ERROR, str(exc))
