"""Domain Types - identity types, enums and constants shared across layers.

Invariants:
    - SchoolId wraps the integer identity assigned by the store
    - ServiceType is fixed for the lifetime of a process
    - PERIOD_END_MAX is the valid_to of every current row, in UTC
    - All valid states encoded as Enums (no raw string matching)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and env vars without custom encoders
"""

from datetime import datetime, timezone
from enum import Enum
from typing import NewType


# --- Identity Types ----------------------------------------------------------

SchoolId = NewType("SchoolId", int)


# --- Constants ---------------------------------------------------------------

PERIOD_START_MIN = datetime.min.replace(tzinfo=timezone.utc)
PERIOD_END_MAX = datetime.max.replace(tzinfo=timezone.utc)
DEFAULT_PRINCIPAL_NAME = "Default Principal"

READ_METHODS = frozenset({"GET", "HEAD"})
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


# --- Enums -------------------------------------------------------------------

class ServiceType(str, Enum):
    """Deployment profile of a service instance (and name of its gateway pool)."""
    DEFAULT = "default"
    READER = "reader"
    WRITER = "writer"

    @classmethod
    def parse(cls, value: "str | ServiceType") -> "ServiceType":
        """Case-insensitive lookup; raises ValueError on unknown values."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Unknown service type '{value}'. "
            f"Expected one of: {', '.join(m.value for m in cls)}",
        )


class ErrorKind(str, Enum):
    """Tagged error kinds carried by repository and service results."""
    NOT_FOUND = "not_found"
    FAILURE = "failure"
    VALIDATION = "validation"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    UNEXPECTED = "unexpected"


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC.

    An offset that pushes the instant past year 1 or year 9999 clamps to
    PERIOD_START_MIN or PERIOD_END_MAX.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        if value.year == datetime.max.year:
            return PERIOD_END_MAX
        return PERIOD_START_MIN
