"""School Schemas - request/response DTOs for the /api/v1/school routes.

Invariants:
    - name 1-100, address 1-200, principalName up to 50 chars (column limits)
    - name and address are stripped and must not be blank; on update so is
      principalName (create leaves a blank one to the service default)
    - JSON uses camelCase (principalName, createdAt, validFrom, validTo, rowVersion)
    - Responses are built from core entities only, never from ORM records

Design Decisions:
    - principalName optional on create: the service applies "Default Principal"
    - rowVersion optional on update: absent means last writer wins
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from school_api.core.entities import School
from school_api.models.school import (
    ADDRESS_MAX_LENGTH, NAME_MAX_LENGTH, PRINCIPAL_NAME_MAX_LENGTH,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("value cannot be empty or whitespace")
    return v


class SchoolCreate(_CamelModel):
    """Body of POST /api/v1/school."""
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    address: str = Field(min_length=1, max_length=ADDRESS_MAX_LENGTH)
    principal_name: str | None = Field(None, max_length=PRINCIPAL_NAME_MAX_LENGTH)

    @field_validator("name", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)

    def to_entity(self) -> School:
        return School(
            name=self.name,
            address=self.address,
            principal_name=self.principal_name or "",
        )


class SchoolUpdate(_CamelModel):
    """Body of PUT /api/v1/school/{id}; id must match the path."""
    id: int
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    address: str = Field(min_length=1, max_length=ADDRESS_MAX_LENGTH)
    principal_name: str = Field(min_length=1, max_length=PRINCIPAL_NAME_MAX_LENGTH)
    row_version: int | None = None

    @field_validator("name", "address", "principal_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)

    def to_entity(self) -> School:
        return School(
            id=self.id,
            name=self.name,
            address=self.address,
            principal_name=self.principal_name,
            row_version=self.row_version,
        )


class SchoolResponse(_CamelModel):
    """A school version as returned to clients."""
    id: int
    name: str
    address: str
    principal_name: str
    created_at: datetime
    valid_from: datetime
    valid_to: datetime
    row_version: int

    @classmethod
    def from_entity(cls, school: School) -> "SchoolResponse":
        return cls(
            id=school.id,
            name=school.name,
            address=school.address,
            principal_name=school.principal_name,
            created_at=school.created_at,
            valid_from=school.valid_from,
            valid_to=school.valid_to,
            row_version=school.row_version,
        )
