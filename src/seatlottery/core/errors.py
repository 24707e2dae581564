"""Result values and error kinds returned by every core operation.

Roster, grid and engine calls never raise for user-correctable input.  They
return a :class:`Result` carrying either the produced value or a
:class:`LotteryError`, and the presentation layer decides how to surface the
failure.  Exceptions are reserved for invariant violations that indicate a
programming bug.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

__all__ = [
    "ErrorCategory",
    "ErrorKind",
    "LotteryError",
    "Result",
    "ResultError",
]

T = TypeVar("T")


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    PRECONDITION = "precondition"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"


class ErrorKind(str, Enum):
    EMPTY_NAME = "empty_name"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_COUNT = "invalid_count"
    NAME_COLLISION = "name_collision"
    NOT_FOUND = "not_found"
    INVALID_DIMENSIONS = "invalid_dimensions"
    INVALID_POSITION = "invalid_position"
    NO_LAYOUT = "no_layout"
    INSUFFICIENT_SEATS = "insufficient_seats"
    NO_STUDENTS = "no_students"
    NO_SEATS = "no_seats"
    INVALID_STUDENTS = "invalid_students"
    INVALID_SEATS = "invalid_seats"
    NO_ASSIGNMENT = "no_assignment"
    CONFIRMATION_REQUIRED = "confirmation_required"
    PERSISTENCE_FAILED = "persistence_failed"
    ASSIGNMENT_FAILED = "assignment_failed"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.EMPTY_NAME: ErrorCategory.VALIDATION,
    ErrorKind.DUPLICATE_NAME: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_COUNT: ErrorCategory.VALIDATION,
    ErrorKind.NAME_COLLISION: ErrorCategory.VALIDATION,
    ErrorKind.NOT_FOUND: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_DIMENSIONS: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_POSITION: ErrorCategory.VALIDATION,
    ErrorKind.NO_LAYOUT: ErrorCategory.PRECONDITION,
    ErrorKind.INSUFFICIENT_SEATS: ErrorCategory.PRECONDITION,
    ErrorKind.NO_STUDENTS: ErrorCategory.PRECONDITION,
    ErrorKind.NO_SEATS: ErrorCategory.PRECONDITION,
    ErrorKind.INVALID_STUDENTS: ErrorCategory.PRECONDITION,
    ErrorKind.INVALID_SEATS: ErrorCategory.PRECONDITION,
    ErrorKind.NO_ASSIGNMENT: ErrorCategory.PRECONDITION,
    ErrorKind.CONFIRMATION_REQUIRED: ErrorCategory.PRECONDITION,
    ErrorKind.PERSISTENCE_FAILED: ErrorCategory.PERSISTENCE,
    ErrorKind.ASSIGNMENT_FAILED: ErrorCategory.INTERNAL,
}

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_NAME: "Please enter a student name.",
    ErrorKind.DUPLICATE_NAME: "A student with this name already exists.",
    ErrorKind.INVALID_COUNT: "Please enter a valid number of students.",
    ErrorKind.NAME_COLLISION: "Could not find free names while generating numbered students.",
    ErrorKind.NOT_FOUND: "The requested item could not be found.",
    ErrorKind.INVALID_DIMENSIONS: "Please enter a valid number of rows and columns.",
    ErrorKind.INVALID_POSITION: "Invalid seat position.",
    ErrorKind.NO_LAYOUT: "No seat layout has been created.",
    ErrorKind.INSUFFICIENT_SEATS: "There are fewer active seats than students.",
    ErrorKind.NO_STUDENTS: "There are no students to assign.",
    ErrorKind.NO_SEATS: "There are no available seats.",
    ErrorKind.INVALID_STUDENTS: "Invalid student data.",
    ErrorKind.INVALID_SEATS: "Invalid seat data.",
    ErrorKind.NO_ASSIGNMENT: "There is no assignment result yet.",
    ErrorKind.CONFIRMATION_REQUIRED: "This action replaces the current roster and layout; confirm to continue.",
    ErrorKind.PERSISTENCE_FAILED: "Saving data failed.",
    ErrorKind.ASSIGNMENT_FAILED: "Seat assignment failed.",
}


@dataclass(frozen=True)
class LotteryError:
    kind: ErrorKind
    message: str

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    @classmethod
    def of(cls, kind: ErrorKind, message: str | None = None) -> LotteryError:
        return cls(kind=kind, message=message or kind.default_message)


class ResultError(RuntimeError):
    """Raised by :meth:`Result.unwrap` when called on a failed result."""

    def __init__(self, error: LotteryError) -> None:
        super().__init__(f"{error.kind.value}: {error.message}")
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: LotteryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str | None = None) -> Result[T]:
        return cls(error=LotteryError.of(kind, message))

    def unwrap(self) -> T:
        if self.error is not None:
            raise ResultError(self.error)
        return self.value  # type: ignore[return-value]
