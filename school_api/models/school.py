"""School ORM - current table plus append-only history table.

Invariants:
    - schools: at most one row per id, valid_to is always PERIOD_END_MAX
    - school_history: one row per superseded or deleted version, closed period
    - row_version is the mapper version counter: every UPDATE/DELETE is guarded
      by WHERE row_version = :expected, so a lost race raises StaleDataError
    - History rows are written only by infrastructure/temporal.py

Design Decisions:
    - Both tables share VERSIONED_COLUMNS so full-history reads are a plain UNION ALL
    - history_id is the surrogate key; id repeats across versions
"""

from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from school_api.core.domain_types import PERIOD_END_MAX, as_utc
from school_api.core.entities import School
from school_api.db.base import Base

NAME_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 200
PRINCIPAL_NAME_MAX_LENGTH = 50

VERSIONED_COLUMNS = (
    "id", "name", "address", "principal_name",
    "created_at", "valid_from", "valid_to", "row_version",
)


class SchoolRecord(Base):
    """Current version of a school."""
    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    address: Mapped[str] = mapped_column(String(ADDRESS_MAX_LENGTH), nullable=False)
    principal_name: Mapped[str] = mapped_column(
        String(PRINCIPAL_NAME_MAX_LENGTH), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    valid_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    valid_to: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=PERIOD_END_MAX,
    )
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": row_version}
    __table_args__ = (
        Index("ix_schools_name", "name"),
        Index("ix_schools_created_at", "created_at"),
        # ids are never reused, on SQLite too
        {"sqlite_autoincrement": True},
    )


class SchoolHistoryRecord(Base):
    """A retired version of a school. Never updated or deleted."""
    __tablename__ = "school_history"

    history_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    address: Mapped[str] = mapped_column(String(ADDRESS_MAX_LENGTH), nullable=False)
    principal_name: Mapped[str] = mapped_column(
        String(PRINCIPAL_NAME_MAX_LENGTH), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    valid_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    valid_to: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_school_history_id_valid_from", "id", "valid_from"),
    )


def school_from_values(values: Mapping[str, Any]) -> School:
    """Map a row mapping (or record attributes) to an untracked entity.

    SQLite hands back naive datetimes; they are normalized to aware UTC so
    both dialects produce identical entities.
    """
    data = {key: values[key] for key in VERSIONED_COLUMNS}
    for key in ("created_at", "valid_from", "valid_to"):
        if data[key] is not None:
            data[key] = as_utc(data[key])
    return School(**data)


def record_values(record: SchoolRecord) -> dict[str, Any]:
    return {key: getattr(record, key) for key in VERSIONED_COLUMNS}
