"""Boundary Protocols - contracts between the service facade and the store.

Invariants:
    - Core NEVER imports from infrastructure; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Expected outcomes (not found, zero rows, conflicts) come back as Result values;
      implementations never raise them across this boundary

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Command and query sides are separate protocols so a reader instance can be
      wired without any mutating dependency
"""

from datetime import datetime
from typing import Protocol

from school_api.core.domain_types import SchoolId
from school_api.core.entities import School
from school_api.core.result import Result


class SchoolCommandRepository(Protocol):
    """Mutating operations. Each call is one unit of work and one new version."""
    async def add(self, school: School) -> Result[School]: ...
    async def update(self, school: School) -> Result[School]: ...
    async def delete(self, school: School) -> Result[bool]: ...


class SchoolQueryRepository(Protocol):
    """Read-only, untracked access to current rows and full history."""
    async def get_by_id(self, school_id: SchoolId) -> Result[School]: ...
    async def get_all(self) -> Result[list[School]]: ...
    async def get_by_date_range(
        self, from_date: datetime, to_date: datetime,
    ) -> Result[list[School]]: ...
    async def get_all_versions(self, school_id: SchoolId) -> Result[list[School]]: ...
    async def get_as_of(self, school_id: SchoolId, at: datetime) -> Result[School]: ...
