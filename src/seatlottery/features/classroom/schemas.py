from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ...classroom.grid import GridStats
from ...classroom.roster import RosterStats
from ...core.assignment import Assignment, format_timestamp
from ...core.errors import LotteryError
from ...core.models import Seat, SeatLayout, SeatPairing, Student
from ...engine.lottery import LotteryStatistics

__all__ = [
    "AddStudentRequest",
    "AssignmentPayload",
    "CreateLayoutRequest",
    "ErrorPayload",
    "GenerateStudentsRequest",
    "HistoryPayload",
    "LayoutPayload",
    "LoadHistoryRequest",
    "RenameStudentRequest",
    "RosterPayload",
    "SeatPayload",
    "SeatStateRequest",
    "SortStudentsRequest",
    "StudentPayload",
    "TextPayload",
]


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ------------------------------------------------------------------- requests
class AddStudentRequest(BaseModel):
    name: str


class GenerateStudentsRequest(BaseModel):
    count: int


class RenameStudentRequest(BaseModel):
    name: str


class SortStudentsRequest(BaseModel):
    mode: Literal["name", "number"] = "name"
    ascending: bool = True


class CreateLayoutRequest(BaseModel):
    rows: int
    cols: int


class SeatStateRequest(BaseModel):
    active: bool


class LoadHistoryRequest(BaseModel):
    confirm: bool = False


# ------------------------------------------------------------------ responses
class ErrorPayload(_APIModel):
    kind: str
    category: str
    message: str

    @classmethod
    def from_error(cls, error: LotteryError) -> ErrorPayload:
        return cls(kind=error.kind.value, category=error.category.value, message=error.message)


class StudentPayload(_APIModel):
    id: str
    name: str
    is_number_based: bool = Field(alias="isNumberBased")

    @classmethod
    def from_model(cls, student: Student) -> StudentPayload:
        return cls(id=student.id, name=student.name, is_number_based=student.is_number_based)


class RosterPayload(_APIModel):
    students: list[StudentPayload]
    total: int
    number_based: int = Field(alias="numberBased")
    name_based: int = Field(alias="nameBased")

    @classmethod
    def build(cls, students: list[Student], stats: RosterStats) -> RosterPayload:
        return cls(
            students=[StudentPayload.from_model(s) for s in students],
            total=stats.total,
            number_based=stats.number_based,
            name_based=stats.name_based,
        )


class SeatPayload(_APIModel):
    row: int
    col: int
    is_active: bool = Field(alias="isActive")
    student: StudentPayload | None = None

    @classmethod
    def from_model(cls, seat: Seat) -> SeatPayload:
        occupant = StudentPayload.from_model(seat.occupant) if seat.occupant is not None else None
        return cls(row=seat.row, col=seat.col, is_active=seat.is_active, student=occupant)


def _seat_rows(layout: SeatLayout | tuple[tuple[Seat, ...], ...]) -> list[list[SeatPayload]]:
    return [[SeatPayload.from_model(seat) for seat in row] for row in layout]


class LayoutPayload(_APIModel):
    rows: int
    cols: int
    seats: list[list[SeatPayload]]
    active: int
    inactive: int
    activation_rate: int = Field(alias="activationRate")

    @classmethod
    def build(cls, layout: SeatLayout, stats: GridStats) -> LayoutPayload:
        return cls(
            rows=len(layout),
            cols=len(layout[0]) if layout else 0,
            seats=_seat_rows(layout),
            active=stats.active,
            inactive=stats.inactive,
            activation_rate=stats.activation_rate,
        )


class PositionPayload(_APIModel):
    row: int
    col: int


class PairingPayload(_APIModel):
    student_id: str = Field(alias="studentId")
    seat_position: PositionPayload = Field(alias="seatPosition")

    @classmethod
    def from_model(cls, pairing: SeatPairing) -> PairingPayload:
        position = pairing.seat_position
        return cls(student_id=pairing.student_id, seat_position=PositionPayload(row=position.row, col=position.col))


class StatisticsPayload(_APIModel):
    total_students: int = Field(alias="totalStudents")
    assigned_seats: int = Field(alias="assignedSeats")
    unassigned_students: int = Field(alias="unassignedStudents")
    total_seats: int = Field(alias="totalSeats")
    unassigned_seats: int = Field(alias="unassignedSeats")
    assignment_rate: int = Field(alias="assignmentRate")

    @classmethod
    def from_model(cls, stats: LotteryStatistics) -> StatisticsPayload:
        return cls.model_validate(stats.to_dict())


class AssignmentPayload(_APIModel):
    id: str
    timestamp: str
    students: list[StudentPayload]
    seat_layout: list[list[SeatPayload]] = Field(alias="seatLayout")
    assignments: list[PairingPayload]
    statistics: StatisticsPayload | None = None

    @classmethod
    def from_model(cls, assignment: Assignment, stats: LotteryStatistics | None = None) -> AssignmentPayload:
        return cls(
            id=assignment.id,
            timestamp=format_timestamp(assignment.timestamp),
            students=[StudentPayload.from_model(s) for s in assignment.students],
            seat_layout=_seat_rows(assignment.seat_layout),
            assignments=[PairingPayload.from_model(p) for p in assignment.assignments],
            statistics=StatisticsPayload.from_model(stats) if stats is not None else None,
        )


class HistoryPayload(_APIModel):
    entries: list[AssignmentPayload]


class TextPayload(_APIModel):
    text: str
