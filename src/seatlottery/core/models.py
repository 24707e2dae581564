from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

__all__ = [
    "Seat",
    "SeatLayout",
    "SeatPairing",
    "SeatPosition",
    "Student",
    "copy_layout",
]


@dataclass(frozen=True)
class Student:
    id: str
    name: str
    # True when created by numbered bulk generation rather than typed in
    is_number_based: bool = False

    def renamed(self, name: str) -> Student:
        return replace(self, name=name)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "isNumberBased": self.is_number_based}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Student:
        return cls(id=data["id"], name=data["name"], is_number_based=bool(data.get("isNumberBased", False)))


@dataclass(frozen=True, order=True)
class SeatPosition:
    row: int
    col: int

    def to_dict(self) -> dict[str, int]:
        return {"row": self.row, "col": self.col}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SeatPosition:
        return cls(row=int(data["row"]), col=int(data["col"]))

    def label(self) -> str:
        """1-based human label, e.g. ``row 2, col 3``."""

        return f"row {self.row + 1}, col {self.col + 1}"


@dataclass(frozen=True)
class Seat:
    """One grid cell.  Inactive seats never hold an occupant."""

    row: int
    col: int
    is_active: bool = True
    occupant: Student | None = None

    def __post_init__(self) -> None:
        if self.row < 0 or self.col < 0:
            raise ValueError(f"seat position must be non-negative, got ({self.row}, {self.col})")
        if not self.is_active and self.occupant is not None:
            raise ValueError(f"inactive seat ({self.row}, {self.col}) cannot hold an occupant")

    @property
    def position(self) -> SeatPosition:
        return SeatPosition(self.row, self.col)

    @property
    def is_empty(self) -> bool:
        return self.occupant is None

    def with_active(self, active: bool) -> Seat:
        if active:
            return replace(self, is_active=True)
        return replace(self, is_active=False, occupant=None)

    def with_occupant(self, student: Student | None) -> Seat:
        return replace(self, occupant=student)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "isActive": self.is_active,
            "student": self.occupant.to_dict() if self.occupant is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Seat:
        raw_student = data.get("student")
        occupant = Student.from_dict(raw_student) if raw_student else None
        return cls(row=int(data["row"]), col=int(data["col"]), is_active=bool(data["isActive"]), occupant=occupant)


@dataclass(frozen=True)
class SeatPairing:
    student_id: str
    seat_position: SeatPosition

    def to_dict(self) -> dict[str, Any]:
        return {"studentId": self.student_id, "seatPosition": self.seat_position.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SeatPairing:
        return cls(student_id=data["studentId"], seat_position=SeatPosition.from_dict(data["seatPosition"]))


SeatLayout = list[list[Seat]]


def copy_layout(layout: SeatLayout | tuple[tuple[Seat, ...], ...]) -> SeatLayout:
    # Seats are frozen, so copying the row lists is a full structural copy.
    return [list(row) for row in layout]
