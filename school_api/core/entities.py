"""School entity - plain record shared by repositories, service and API mapping.

Invariants:
    - id is None until the store assigns it on insert
    - created_at is the first-ever creation time; every version of an id shares it
    - valid_from/valid_to are filled by the temporal store, never by callers
"""

from dataclasses import dataclass
from datetime import datetime

from school_api.core.domain_types import PERIOD_END_MAX, SchoolId


@dataclass
class School:
    """One version of a school. Current versions have valid_to == PERIOD_END_MAX."""
    name: str
    address: str
    principal_name: str = ""
    id: SchoolId | None = None
    created_at: datetime | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    row_version: int | None = None

    @property
    def is_current(self) -> bool:
        return self.valid_to == PERIOD_END_MAX
