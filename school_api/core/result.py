"""Result Type - tagged Ok | Err values for expected outcomes.

Invariants:
    - Repositories and the service never raise for NotFound, Failure, Conflict
    - Err always carries an Error with a kind and a machine-readable code
    - Ok and Err are immutable

Design Decisions:
    - Frozen dataclasses over a third-party result library: two small types,
      pattern-matchable with isinstance / match
    - Error codes double as localization keys (core/language_strings.py)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from school_api.core.domain_types import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Error:
    """A typed error: kind decides the HTTP status, code the message."""
    kind: ErrorKind
    code: str
    description: str = ""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_error(self) -> bool:
        return False


@dataclass(frozen=True)
class Err:
    error: Error

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_error(self) -> bool:
        return True

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def code(self) -> str:
        return self.error.code


Result = Union[Ok[T], Err]


def not_found(code: str, description: str = "") -> Err:
    return Err(Error(ErrorKind.NOT_FOUND, code, description))


def failure(code: str, description: str = "") -> Err:
    return Err(Error(ErrorKind.FAILURE, code, description))


def validation(code: str, description: str = "") -> Err:
    return Err(Error(ErrorKind.VALIDATION, code, description))


def forbidden(code: str, description: str = "") -> Err:
    return Err(Error(ErrorKind.FORBIDDEN, code, description))


def conflict(code: str, description: str = "") -> Err:
    return Err(Error(ErrorKind.CONFLICT, code, description))
