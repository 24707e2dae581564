"""Immutable lottery results.

An :class:`Assignment` freezes the roster, the seat layout (with occupants
filled in) and the ordered student-to-seat pairings produced by one lottery
run.  It serialises to the JSON shape the browser tool stores::

    {"id", "timestamp", "students", "seatLayout", "assignments"}
"""

from __future__ import annotations

import math
import secrets
import string
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .models import Seat, SeatPairing, SeatPosition, Student

__all__ = [
    "Assignment",
    "AssignmentStats",
    "format_timestamp",
    "parse_timestamp",
    "round_half_up",
]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""

    utc = moment.astimezone(timezone.utc) if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 instant; naive values are taken as UTC.

    Raises ``ValueError`` when ``raw`` is not a parseable instant.
    """

    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _normalise(moment: datetime) -> datetime:
    """UTC with millisecond precision, so the serialised form round-trips exactly.

    Naive values are taken as UTC, matching :func:`parse_timestamp`.
    """

    utc = moment.astimezone(timezone.utc) if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
    return utc.replace(microsecond=(utc.microsecond // 1000) * 1000)


def _now() -> datetime:
    return _normalise(datetime.now(timezone.utc))


def _assignment_id(moment: datetime) -> str:
    millis = int(moment.timestamp()) * 1000 + moment.microsecond // 1000
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"assignment_{millis}_{suffix}"


@dataclass(frozen=True)
class AssignmentStats:
    total_students: int
    total_seats: int
    assigned_seats: int
    unassigned_seats: int
    assignment_rate: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalStudents": self.total_students,
            "totalSeats": self.total_seats,
            "assignedSeats": self.assigned_seats,
            "unassignedSeats": self.unassigned_seats,
            "assignmentRate": self.assignment_rate,
        }


@dataclass(frozen=True)
class Assignment:
    id: str
    timestamp: datetime
    students: tuple[Student, ...]
    seat_layout: tuple[tuple[Seat, ...], ...]
    assignments: tuple[SeatPairing, ...]

    @classmethod
    def create(
        cls,
        students: Iterable[Student],
        seat_layout: Iterable[Iterable[Seat]],
        pairings: Iterable[SeatPairing],
        *,
        timestamp: datetime | None = None,
    ) -> Assignment:
        moment = _normalise(timestamp) if timestamp is not None else _now()
        return cls(
            id=_assignment_id(moment),
            timestamp=moment,
            students=tuple(students),
            seat_layout=tuple(tuple(row) for row in seat_layout),
            assignments=tuple(pairings),
        )

    # ------------------------------------------------------------------ queries
    @property
    def rows(self) -> int:
        return len(self.seat_layout)

    @property
    def cols(self) -> int:
        return len(self.seat_layout[0]) if self.seat_layout else 0

    def student(self, student_id: str) -> Student | None:
        return next((student for student in self.students if student.id == student_id), None)

    def seat_of(self, student_id: str) -> SeatPosition | None:
        pairing = next((entry for entry in self.assignments if entry.student_id == student_id), None)
        return pairing.seat_position if pairing else None

    def student_at(self, row: int, col: int) -> str | None:
        target = SeatPosition(row, col)
        pairing = next((entry for entry in self.assignments if entry.seat_position == target), None)
        return pairing.student_id if pairing else None

    def seat(self, position: SeatPosition) -> Seat | None:
        if not (0 <= position.row < self.rows):
            return None
        row = self.seat_layout[position.row]
        if not (0 <= position.col < len(row)):
            return None
        return row[position.col]

    def statistics(self) -> AssignmentStats:
        total_seats = sum(1 for row in self.seat_layout for seat in row if seat.is_active)
        assigned = len(self.assignments)
        total_students = len(self.students)
        rate = round_half_up(assigned / total_students * 100) if total_students else 0
        return AssignmentStats(
            total_students=total_students,
            total_seats=total_seats,
            assigned_seats=assigned,
            unassigned_seats=total_seats - assigned,
            assignment_rate=rate,
        )

    # ------------------------------------------------------------ serialisation
    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": format_timestamp(self.timestamp),
            "students": [student.to_dict() for student in self.students],
            "seatLayout": [[seat.to_dict() for seat in row] for row in self.seat_layout],
            "assignments": [pairing.to_dict() for pairing in self.assignments],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Assignment:
        raw_layout: Sequence[Sequence[Mapping[str, Any]]] = data["seatLayout"]
        return cls(
            id=data["id"],
            timestamp=parse_timestamp(data["timestamp"]),
            students=tuple(Student.from_dict(item) for item in data["students"]),
            seat_layout=tuple(tuple(Seat.from_dict(item) for item in row) for row in raw_layout),
            assignments=tuple(SeatPairing.from_dict(item) for item in data["assignments"]),
        )

    def to_text(self) -> str:
        """Plain-text export used for clipboard copies and history downloads."""

        local = self.timestamp.astimezone()
        lines = [f"Seat assignment result ({local:%Y-%m-%d %H:%M:%S})", "=" * 50, ""]
        for index, pairing in enumerate(self.assignments, start=1):
            student = self.student(pairing.student_id)
            name = student.name if student else "unknown"
            lines.append(f"{index}. {name} → {pairing.seat_position.label()}")
        stats = self.statistics()
        lines.extend(
            [
                "",
                "-" * 30,
                f"Total students: {stats.total_students}",
                f"Assigned seats: {stats.assigned_seats}",
                f"Assignment rate: {stats.assignment_rate}%",
            ]
        )
        return "\n".join(lines) + "\n"
