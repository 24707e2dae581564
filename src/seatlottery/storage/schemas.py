"""Shape checks applied to records read back from the store.

Anything that fails these models is treated as absent by the repository,
so a corrupted or hand-edited store never crashes the application.
"""

from __future__ import annotations

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
    model_validator,
)

from ..core.assignment import Assignment, parse_timestamp
from ..core.models import Seat, SeatLayout, SeatPairing, SeatPosition, Student

__all__ = [
    "AssignmentRecord",
    "PairingRecord",
    "PositionRecord",
    "SeatRecord",
    "StudentRecord",
    "layout_from_records",
    "parse_layout",
    "parse_students",
]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StudentRecord(_Record):
    id: StrictStr
    name: StrictStr
    is_number_based: StrictBool = Field(alias="isNumberBased")

    @field_validator("name")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("student name must not be blank")
        return value

    def to_model(self) -> Student:
        return Student(id=self.id, name=self.name, is_number_based=self.is_number_based)


class SeatRecord(_Record):
    row: StrictInt = Field(ge=0)
    col: StrictInt = Field(ge=0)
    is_active: StrictBool = Field(alias="isActive")
    student: StudentRecord | None = None

    @model_validator(mode="after")
    def _inactive_seats_are_empty(self) -> SeatRecord:
        if not self.is_active and self.student is not None:
            raise ValueError("inactive seat holds a student")
        return self

    def to_model(self) -> Seat:
        occupant = self.student.to_model() if self.student is not None else None
        return Seat(row=self.row, col=self.col, is_active=self.is_active, occupant=occupant)


class PositionRecord(_Record):
    row: StrictInt = Field(ge=0)
    col: StrictInt = Field(ge=0)


class PairingRecord(_Record):
    student_id: StrictStr = Field(alias="studentId")
    seat_position: PositionRecord = Field(alias="seatPosition")

    def to_model(self) -> SeatPairing:
        return SeatPairing(
            student_id=self.student_id,
            seat_position=SeatPosition(self.seat_position.row, self.seat_position.col),
        )


def _check_grid(rows: list[list[SeatRecord]]) -> list[list[SeatRecord]]:
    if not rows or not rows[0]:
        raise ValueError("seat layout must contain at least one seat")
    width = len(rows[0])
    for r, row in enumerate(rows):
        if len(row) != width:
            raise ValueError("seat layout must be rectangular")
        for c, seat in enumerate(row):
            if (seat.row, seat.col) != (r, c):
                raise ValueError(f"seat at index ({r}, {c}) reports position ({seat.row}, {seat.col})")
    return rows


class AssignmentRecord(_Record):
    id: StrictStr
    timestamp: StrictStr
    students: list[StudentRecord]
    seat_layout: list[list[SeatRecord]] = Field(alias="seatLayout")
    assignments: list[PairingRecord]

    @field_validator("timestamp")
    @classmethod
    def _parseable_instant(cls, value: str) -> str:
        parse_timestamp(value)
        return value

    @field_validator("seat_layout")
    @classmethod
    def _rectangular(cls, value: list[list[SeatRecord]]) -> list[list[SeatRecord]]:
        return _check_grid(value)

    def to_model(self) -> Assignment:
        return Assignment(
            id=self.id,
            timestamp=parse_timestamp(self.timestamp),
            students=tuple(record.to_model() for record in self.students),
            seat_layout=tuple(tuple(seat.to_model() for seat in row) for row in self.seat_layout),
            assignments=tuple(record.to_model() for record in self.assignments),
        )


_STUDENTS = TypeAdapter(list[StudentRecord])
_LAYOUT = TypeAdapter(list[list[SeatRecord]])


def parse_students(raw: object) -> list[Student]:
    """Validate a stored roster; raises ``pydantic.ValidationError``."""

    return [record.to_model() for record in _STUDENTS.validate_python(raw)]


def layout_from_records(rows: list[list[SeatRecord]]) -> SeatLayout:
    return [[seat.to_model() for seat in row] for row in _check_grid(rows)]


def parse_layout(raw: object) -> SeatLayout:
    """Validate a stored seat grid; raises ``ValueError`` (incl. ``ValidationError``)."""

    return layout_from_records(_LAYOUT.validate_python(raw))
