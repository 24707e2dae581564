from __future__ import annotations

import random
from datetime import datetime, timezone

from seatlottery.core.assignment import Assignment
from seatlottery.core.errors import ErrorKind
from seatlottery.core.models import Seat, SeatPairing, SeatPosition, Student
from seatlottery.engine.lottery import LotteryEngine

FIXED = datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)


def _engine(seed: int = 42) -> LotteryEngine:
    return LotteryEngine(random.Random(seed), clock=lambda: FIXED)


def _students(*names: str) -> list[Student]:
    return [Student(id=f"student_{i}", name=name) for i, name in enumerate(names, start=1)]


def _grid(rows: int, cols: int, inactive: set[tuple[int, int]] = frozenset()) -> list[list[Seat]]:
    return [[Seat(r, c, is_active=(r, c) not in inactive) for c in range(cols)] for r in range(rows)]


def test_three_students_on_two_by_two_grid():
    engine = _engine()
    students = _students("Kim", "Lee", "Park")
    result = engine.perform_lottery(students, _grid(2, 2))

    assert result.ok
    assignment = result.unwrap()
    assert len(assignment.assignments) == 3
    assert assignment.timestamp == FIXED
    assert engine.statistics(assignment).assignment_rate == 100
    assert engine.check_consistency(assignment).is_valid


def test_more_students_than_seats_is_rejected():
    engine = _engine()
    result = engine.perform_lottery(_students("a", "b", "c", "d", "e"), _grid(2, 2))
    assert result.kind is ErrorKind.INSUFFICIENT_SEATS
    assert result.value is None


def test_pairings_only_use_active_seats_and_fill_occupants():
    engine = _engine(3)
    students = _students("Kim", "Lee", "Park", "Choi")
    inactive = {(0, 1), (2, 2)}
    for _ in range(30):
        assignment = engine.perform_lottery(students, _grid(3, 3, inactive)).unwrap()
        positions = [pairing.seat_position for pairing in assignment.assignments]
        assert len(set(positions)) == len(students)
        assert {p.student_id for p in assignment.assignments} == {s.id for s in students}
        for position in positions:
            assert (position.row, position.col) not in inactive
            seat = assignment.seat(position)
            assert seat is not None and seat.occupant is not None
            assert seat.occupant.id == assignment.student_at(position.row, position.col)
        occupied = sum(1 for row in assignment.seat_layout for seat in row if seat.occupant is not None)
        assert occupied == len(students)


def test_input_layout_is_not_mutated():
    layout = _grid(2, 2)
    _engine().perform_lottery(_students("Kim"), layout)
    assert all(seat.occupant is None for row in layout for seat in row)


def test_validation_errors():
    engine = _engine()
    assert engine.perform_lottery([], _grid(2, 2)).kind is ErrorKind.NO_STUDENTS
    assert engine.perform_lottery(_students("Kim"), _grid(1, 1, {(0, 0)})).kind is ErrorKind.NO_SEATS
    duplicate = [Student("student_1", "Kim"), Student("student_1", "Lee")]
    assert engine.perform_lottery(duplicate, _grid(2, 2)).kind is ErrorKind.INVALID_STUDENTS
    assert engine.validate_students("Kim").kind is ErrorKind.INVALID_STUDENTS
    assert engine.perform_lottery(_students("Kim"), [["not a seat"]]).kind is ErrorKind.INVALID_SEATS
    assert engine.perform_lottery(_students("Kim"), 5).kind is ErrorKind.INVALID_SEATS  # type: ignore[arg-type]
    assert engine.validate_seats([Seat(0, 0), Seat(0, 0)]).kind is ErrorKind.INVALID_SEATS
    assert engine.validate_seats([Seat(0, 0, is_active=False)]).kind is ErrorKind.INVALID_SEATS


def test_same_seed_gives_same_pairings():
    students = _students("Kim", "Lee", "Park")
    first = _engine(11).perform_lottery(students, _grid(2, 2)).unwrap()
    second = _engine(11).perform_lottery(students, _grid(2, 2)).unwrap()
    assert first.assignments == second.assignments


def test_statistics_without_assignment_are_zero():
    stats = _engine().statistics(None)
    assert stats.to_dict() == {
        "totalStudents": 0,
        "assignedSeats": 0,
        "unassignedStudents": 0,
        "totalSeats": 0,
        "unassignedSeats": 0,
        "assignmentRate": 0,
    }


def test_consistency_check_reports_broken_assignments():
    kim, lee = _students("Kim", "Lee")
    layout = ((Seat(0, 0), Seat(0, 1, is_active=False)),)
    broken = Assignment(
        id="assignment_1_abcdefghi",
        timestamp=FIXED,
        students=(kim, lee),
        seat_layout=layout,
        assignments=(
            SeatPairing(kim.id, SeatPosition(0, 0)),
            SeatPairing(lee.id, SeatPosition(0, 0)),
            SeatPairing("student_9", SeatPosition(0, 1)),
            SeatPairing(kim.id, SeatPosition(4, 4)),
        ),
    )
    report = _engine().check_consistency(broken)
    assert not report.is_valid
    text = " ".join(report.issues)
    assert "more than once" in text
    assert "not part of the assignment roster" in text
    assert "outside the layout" in text
    assert "Inactive seat" in text
    assert not _engine().check_consistency(None).is_valid


def test_visualize_truncates_names_and_marks_cells():
    engine = _engine()
    students = [Student("student_1", "김민수")]
    assignment = engine.perform_lottery(students, _grid(1, 2, {(0, 1)})).unwrap()
    text = engine.visualize(assignment)
    lines = text.splitlines()
    assert lines[0] == "Seat assignment visualization"
    assert lines[3] == "     1   2 "
    assert lines[4] == " 1  김민  ×  "
    assert engine.visualize(None) == "No assignment result.\n"
