"""Random student-to-seat assignment.

The engine is stateless apart from its random source.  A run validates the
students and the active seats, shuffles independent copies of both with
Fisher-Yates, zips them positionally and freezes the outcome into an
:class:`~seatlottery.core.assignment.Assignment`.  Validation failures carry a
specific :class:`~seatlottery.core.errors.ErrorKind`; anything that goes
wrong after validation is logged and reported as ``ASSIGNMENT_FAILED``.
"""

from __future__ import annotations

import logging
import random
import secrets
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from ..core.assignment import Assignment
from ..core.errors import ErrorKind, Result
from ..core.models import Seat, SeatLayout, SeatPairing, SeatPosition, Student
from .shuffle import fisher_yates

__all__ = ["ConsistencyReport", "LotteryEngine", "LotteryStatistics"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_INACTIVE_CELL = " × "
_EMPTY_CELL = " ○ "


@dataclass(frozen=True)
class LotteryStatistics:
    total_students: int
    assigned_seats: int
    unassigned_students: int
    total_seats: int
    unassigned_seats: int
    assignment_rate: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalStudents": self.total_students,
            "assignedSeats": self.assigned_seats,
            "unassignedStudents": self.unassigned_students,
            "totalSeats": self.total_seats,
            "unassignedSeats": self.unassigned_seats,
            "assignmentRate": self.assignment_rate,
        }


_EMPTY_STATISTICS = LotteryStatistics(
    total_students=0,
    assigned_seats=0,
    unassigned_students=0,
    total_seats=0,
    unassigned_seats=0,
    assignment_rate=0,
)


@dataclass(frozen=True)
class ConsistencyReport:
    issues: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.issues


def _cell(seat: Seat) -> str:
    if not seat.is_active:
        return _INACTIVE_CELL
    if seat.occupant is None:
        return _EMPTY_CELL
    # First two code points; Hangul syllables are single code points.
    return seat.occupant.name[:2].rjust(3)


class LotteryEngine:
    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rng = rng if rng is not None else random.Random(secrets.SystemRandom().getrandbits(64))
        self._clock = clock

    @property
    def rng(self) -> random.Random:
        return self._rng

    def shuffle(self, items: Sequence[T]) -> list[T]:
        return fisher_yates(items, self._rng)

    # -------------------------------------------------------------- validation
    def validate_students(self, students: object) -> Result[None]:
        if not isinstance(students, (list, tuple)):
            return Result.failure(ErrorKind.INVALID_STUDENTS)
        if not students:
            return Result.failure(ErrorKind.NO_STUDENTS)
        seen: set[str] = set()
        for student in students:
            if (
                not isinstance(student, Student)
                or not isinstance(student.id, str)
                or not student.id
                or not isinstance(student.name, str)
                or not student.name.strip()
                or student.id in seen
            ):
                return Result.failure(ErrorKind.INVALID_STUDENTS)
            seen.add(student.id)
        return Result.success()

    def validate_seats(self, seats: object) -> Result[None]:
        if not isinstance(seats, (list, tuple)):
            return Result.failure(ErrorKind.INVALID_SEATS)
        if not seats:
            return Result.failure(ErrorKind.NO_SEATS)
        seen: set[tuple[int, int]] = set()
        for seat in seats:
            if not isinstance(seat, Seat) or not seat.is_active or (seat.row, seat.col) in seen:
                return Result.failure(ErrorKind.INVALID_SEATS)
            seen.add((seat.row, seat.col))
        return Result.success()

    def validate_possibility(self, students: Sequence[Student], active_seats: Sequence[Seat]) -> Result[None]:
        checked = self.validate_students(students)
        if not checked.ok:
            return checked
        checked = self.validate_seats(active_seats)
        if not checked.ok:
            return checked
        if len(active_seats) < len(students):
            return Result.failure(
                ErrorKind.INSUFFICIENT_SEATS,
                f"{len(active_seats)} active seats cannot hold {len(students)} students.",
            )
        return Result.success()

    # ---------------------------------------------------------------- drawing
    def assign_seats(self, students: Sequence[Student], active_seats: Sequence[Seat]) -> Result[list[SeatPairing]]:
        """Pair every student with a distinct active seat, uniformly at random."""

        checked = self.validate_possibility(students, active_seats)
        if not checked.ok:
            return Result(error=checked.error)
        try:
            shuffled_students = self.shuffle(students)
            shuffled_seats = self.shuffle(active_seats)
            pairings = [
                SeatPairing(student_id=student.id, seat_position=seat.position)
                for student, seat in zip(shuffled_students, shuffled_seats)
            ]
        except Exception:
            logger.exception("Seat pairing failed", extra={"students": len(students), "seats": len(active_seats)})
            return Result.failure(ErrorKind.ASSIGNMENT_FAILED)
        return Result.success(pairings)

    def materialize(
        self,
        students: Sequence[Student],
        seat_layout: Iterable[Iterable[Seat]],
        pairings: Sequence[SeatPairing],
    ) -> SeatLayout:
        """Copy ``seat_layout`` with each paired seat holding its student.

        Raises ``ValueError`` when a pairing references an unknown student or
        a seat that is missing or inactive.
        """

        by_id = {student.id: student for student in students}
        by_position: dict[SeatPosition, Student] = {}
        for pairing in pairings:
            student = by_id.get(pairing.student_id)
            if student is None:
                raise ValueError(f"pairing references unknown student {pairing.student_id!r}")
            by_position[pairing.seat_position] = student

        layout: SeatLayout = []
        placed = 0
        for row in seat_layout:
            copied: list[Seat] = []
            for seat in row:
                occupant = by_position.get(seat.position)
                if occupant is not None:
                    placed += 1
                # Seat() refuses an occupant on an inactive seat.
                copied.append(Seat(row=seat.row, col=seat.col, is_active=seat.is_active, occupant=occupant))
            layout.append(copied)
        if placed != len(by_position):
            raise ValueError("pairing references a seat outside the layout")
        return layout

    def perform_lottery(self, students: Sequence[Student], seat_layout: Sequence[Sequence[Seat]]) -> Result[Assignment]:
        """Run a full lottery over the active seats of ``seat_layout``."""

        try:
            cells = [seat for row in seat_layout for seat in row]
        except TypeError:
            return Result.failure(ErrorKind.INVALID_SEATS)
        if any(not isinstance(seat, Seat) for seat in cells):
            return Result.failure(ErrorKind.INVALID_SEATS)
        active_seats = [seat for seat in cells if seat.is_active]

        drawn = self.assign_seats(students, active_seats)
        if not drawn.ok:
            return Result(error=drawn.error)

        pairings = drawn.unwrap()
        try:
            layout = self.materialize(students, seat_layout, pairings)
            timestamp = self._clock() if self._clock is not None else None
            assignment = Assignment.create(students, layout, pairings, timestamp=timestamp)
        except Exception:
            logger.exception("Building the assignment failed", extra={"students": len(students)})
            return Result.failure(ErrorKind.ASSIGNMENT_FAILED)

        logger.debug(
            "Lottery complete",
            extra={"assignment_id": assignment.id, "students": len(students), "seats": len(active_seats)},
        )
        return Result.success(assignment)

    # -------------------------------------------------------------- auxiliary
    def statistics(self, assignment: Assignment | None) -> LotteryStatistics:
        if assignment is None:
            return _EMPTY_STATISTICS
        stats = assignment.statistics()
        return LotteryStatistics(
            total_students=stats.total_students,
            assigned_seats=stats.assigned_seats,
            unassigned_students=stats.total_students - stats.assigned_seats,
            total_seats=stats.total_seats,
            unassigned_seats=stats.unassigned_seats,
            assignment_rate=stats.assignment_rate,
        )

    def check_consistency(self, assignment: Assignment | None) -> ConsistencyReport:
        """Sanity check used by tests and diagnostics, not by the draw itself."""

        if assignment is None:
            return ConsistencyReport(issues=("No assignment to check.",))

        issues: list[str] = []
        known_students = {student.id for student in assignment.students}
        seen_positions: set[SeatPosition] = set()
        seen_students: set[str] = set()
        for pairing in assignment.assignments:
            position = pairing.seat_position
            if position in seen_positions:
                issues.append(f"Seat ({position.label()}) is assigned more than once.")
            seen_positions.add(position)

            if pairing.student_id in seen_students:
                issues.append(f"Student {pairing.student_id} is assigned more than once.")
            seen_students.add(pairing.student_id)

            if pairing.student_id not in known_students:
                issues.append(f"Student {pairing.student_id} is not part of the assignment roster.")

            seat = assignment.seat(position)
            if seat is None:
                issues.append(f"Seat ({position.label()}) lies outside the layout.")
            elif not seat.is_active:
                issues.append(f"Inactive seat ({position.label()}) has an assignment.")

        return ConsistencyReport(issues=tuple(issues))

    def visualize(self, assignment: Assignment | None) -> str:
        """Render the assigned grid as fixed-width text."""

        if assignment is None or not assignment.seat_layout:
            return "No assignment result.\n"

        lines = ["Seat assignment visualization", "=" * 40, ""]
        header = "   " + "".join(f"{col + 1:>3} " for col in range(assignment.cols))
        lines.append(header)
        for index, row in enumerate(assignment.seat_layout, start=1):
            lines.append(f"{index:>2} " + "".join(_cell(seat) + " " for seat in row))
        lines.extend(["", "Legend: ○ = empty seat, × = inactive, name = assigned student"])
        return "\n".join(lines) + "\n"
