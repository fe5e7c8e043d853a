"""Temporal Versioning - system-versioned behaviour for the schools table.

Plays the role a SQL Server temporal table plays natively: repositories only
insert, update or delete SchoolRecord rows, and this before_flush hook keeps
school_history in step inside the same flush, so the version write and the
current-row write commit or roll back together.

Invariants:
    - Insert: valid_from = now, valid_to = PERIOD_END_MAX, no history row
    - Update: pre-image appended to history with valid_to = now; current row
      gets valid_from = now
    - Delete: final version appended to history with valid_to = now
    - Per id, valid_from is strictly increasing (ties bumped by 1 microsecond)
    - Only TemporalSession flushes are versioned; other sessions are untouched

Design Decisions:
    - Listener bound to a Session subclass, not the global Session class:
      scoped to the session factories built by DatabaseSessionManager
    - Pre-images read from attribute history, so no extra SELECT is issued
    - utc_now() is a module-level function so tests can pin the clock
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from school_api.core.domain_types import PERIOD_END_MAX, as_utc
from school_api.models.school import (
    SchoolHistoryRecord, SchoolRecord, VERSIONED_COLUMNS,
)

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TemporalSession(Session):
    """Sync session class whose flushes maintain school_history."""


def _period_start_after(previous: datetime | None) -> datetime:
    """Current time, moved forward if it would not follow `previous`."""
    now = as_utc(utc_now())
    if previous is not None:
        previous = as_utc(previous)
        if now <= previous:
            now = previous + _TICK
    return now


def _pre_image(record: SchoolRecord, key: str):
    """Value of `key` as last loaded from the database."""
    history = inspect(record).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return getattr(record, key)


def _snapshot(record: SchoolRecord, valid_to: datetime) -> SchoolHistoryRecord:
    values = {key: _pre_image(record, key) for key in VERSIONED_COLUMNS}
    values["valid_to"] = valid_to
    return SchoolHistoryRecord(**values)


@event.listens_for(TemporalSession, "before_flush")
def _version_schools(session: Session, flush_context, instances) -> None:
    for record in session.new:
        if isinstance(record, SchoolRecord):
            record.valid_from = _period_start_after(None)
            record.valid_to = PERIOD_END_MAX

    for record in session.dirty:
        if not isinstance(record, SchoolRecord):
            continue
        if not session.is_modified(record, include_collections=False):
            continue
        period_start = _period_start_after(_pre_image(record, "valid_from"))
        session.add(_snapshot(record, valid_to=period_start))
        record.valid_from = period_start
        record.valid_to = PERIOD_END_MAX
        logger.debug(
            f"Retired version {_pre_image(record, 'row_version')} of school {record.id}",
            extra={"school_id": record.id},
        )

    for record in session.deleted:
        if isinstance(record, SchoolRecord):
            closed_at = _period_start_after(_pre_image(record, "valid_from"))
            session.add(_snapshot(record, valid_to=closed_at))
            logger.debug(
                f"Closed final version of school {record.id}",
                extra={"school_id": record.id},
            )
