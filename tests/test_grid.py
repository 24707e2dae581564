from __future__ import annotations

import pytest

from seatlottery.classroom.grid import SeatGrid
from seatlottery.core.errors import ErrorKind
from seatlottery.core.models import Seat, Student
from seatlottery.storage.backends import MemoryStore
from seatlottery.storage.repository import ClassroomRepository


def _grid(store: MemoryStore | None = None) -> tuple[SeatGrid, MemoryStore]:
    store = store or MemoryStore()
    return SeatGrid(ClassroomRepository(store)), store


def test_toggling_twice_restores_the_seat():
    grid, _ = _grid()
    grid.create_layout(3, 3).unwrap()
    assert grid.toggle(1, 1).unwrap().is_active is False
    assert grid.toggle(1, 1).unwrap().is_active is True
    assert grid.available_count == 9


def test_create_layout_builds_active_grid_with_matching_positions():
    grid, _ = _grid()
    grid.create_layout(2, 4).unwrap()
    assert grid.dimensions == (2, 4)
    layout = grid.layout()
    for r, row in enumerate(layout):
        for c, seat in enumerate(row):
            assert (seat.row, seat.col) == (r, c)
            assert seat.is_active and seat.is_empty


@pytest.mark.parametrize("rows, cols", [(0, 3), (3, 0), (21, 1), (1, 21), (2.0, 2), (True, 2), ("3", 3)])
def test_invalid_dimensions(rows: object, cols: object):
    grid, _ = _grid()
    assert grid.create_layout(rows, cols).kind is ErrorKind.INVALID_DIMENSIONS  # type: ignore[arg-type]
    assert not grid.has_layout()


def test_position_checks():
    grid, _ = _grid()
    assert grid.toggle(0, 0).kind is ErrorKind.NO_LAYOUT
    grid.create_layout(2, 2).unwrap()
    assert grid.toggle(2, 0).kind is ErrorKind.INVALID_POSITION
    assert grid.set_active(-1, 0, False).kind is ErrorKind.INVALID_POSITION
    assert grid.seat(5, 5) is None


def test_available_seats_are_row_major_and_active_only():
    grid, _ = _grid()
    grid.create_layout(2, 2).unwrap()
    grid.set_active(0, 1, False).unwrap()
    assert [(s.row, s.col) for s in grid.available_seats()] == [(0, 0), (1, 0), (1, 1)]
    stats = grid.statistics()
    assert (stats.total, stats.active, stats.inactive) == (4, 3, 1)
    assert stats.activation_rate == 75


def test_bulk_activation():
    grid, _ = _grid()
    assert grid.activate_all().kind is ErrorKind.NO_LAYOUT
    grid.create_layout(2, 3).unwrap()
    grid.deactivate_all().unwrap()
    assert grid.available_count == 0
    grid.activate_all().unwrap()
    assert grid.available_count == 6


def test_validate_against_student_count():
    grid, _ = _grid()
    assert grid.validate_against(1).kind is ErrorKind.NO_LAYOUT
    grid.create_layout(1, 2).unwrap()
    assert grid.validate_against(2).unwrap() == 2
    assert grid.validate_against(3).kind is ErrorKind.INSUFFICIENT_SEATS


def test_layout_is_a_copy():
    grid, _ = _grid()
    grid.create_layout(1, 1).unwrap()
    copy = grid.layout()
    copy[0][0] = Seat(0, 0, is_active=False)
    assert grid.seat(0, 0).is_active  # type: ignore[union-attr]


def test_layout_persists_and_clear_removes_it():
    grid, store = _grid()
    grid.create_layout(2, 2).unwrap()
    grid.toggle(0, 0).unwrap()

    reloaded, _ = _grid(store)
    assert reloaded.dimensions == (2, 2)
    assert reloaded.seat(0, 0).is_active is False  # type: ignore[union-attr]

    reloaded.clear_layout().unwrap()
    assert store.load("classroom_lottery_seat_layout") is None
    assert not _grid(store)[0].has_layout()


def test_failed_save_keeps_previous_layout():
    grid, store = _grid()
    grid.create_layout(2, 2).unwrap()
    store.available = False
    assert grid.toggle(0, 0).kind is ErrorKind.PERSISTENCE_FAILED
    assert grid.seat(0, 0).is_active  # type: ignore[union-attr]
    assert grid.create_layout(4, 4).kind is ErrorKind.PERSISTENCE_FAILED
    assert grid.dimensions == (2, 2)


def test_replace_layout_checks_shape():
    grid, _ = _grid()
    assert grid.replace_layout([]).kind is ErrorKind.INVALID_DIMENSIONS
    ragged = [[Seat(0, 0), Seat(0, 1)], [Seat(1, 0)]]
    assert grid.replace_layout(ragged).kind is ErrorKind.INVALID_SEATS
    misplaced = [[Seat(0, 1)]]
    assert grid.replace_layout(misplaced).kind is ErrorKind.INVALID_SEATS
    grid.replace_layout([[Seat(0, 0), Seat(0, 1, is_active=False)]]).unwrap()
    assert grid.dimensions == (1, 2)
    assert grid.available_count == 1


def test_export_text():
    grid, _ = _grid()
    assert grid.export_text() == "No seat layout has been created.\n"
    grid.create_layout(1, 3).unwrap()
    grid.toggle(0, 2).unwrap()
    text = grid.export_text()
    assert "Row 1: ○ ○ ×" in text
    assert "Activation rate: 67%" in text


def test_inactive_seats_never_keep_occupants():
    grid, store = _grid()
    kim, lee, park = (Student(f"student_{i}", name) for i, name in enumerate(("Kim", "Lee", "Park"), start=1))
    grid.replace_layout(
        [
            [Seat(0, 0, occupant=kim), Seat(0, 1, occupant=lee)],
            [Seat(1, 0, occupant=park), Seat(1, 1)],
        ]
    ).unwrap()

    assert grid.toggle(0, 0).unwrap().occupant is None
    assert grid.set_active(0, 1, False).unwrap().occupant is None
    assert grid.seat(1, 0).occupant == park  # type: ignore[union-attr]

    def no_inactive_occupants(layout: list[list[Seat]]) -> bool:
        return all(seat.is_empty for row in layout for seat in row if not seat.is_active)

    assert no_inactive_occupants(grid.layout())
    assert no_inactive_occupants(_grid(store)[0].layout())

    grid.deactivate_all().unwrap()
    assert all(seat.is_empty for row in grid.layout() for seat in row)
    reloaded = _grid(store)[0]
    assert reloaded.available_count == 0
    assert all(seat.is_empty for row in reloaded.layout() for seat in row)


def test_vacate_all_keeps_active_state():
    grid, store = _grid()
    kim = Student("student_1", "Kim")
    grid.replace_layout([[Seat(0, 0, occupant=kim), Seat(0, 1, is_active=False)]]).unwrap()

    store.available = False
    assert grid.vacate_all().kind is ErrorKind.PERSISTENCE_FAILED
    assert grid.seat(0, 0).occupant == kim  # type: ignore[union-attr]

    store.available = True
    grid.vacate_all().unwrap()
    assert grid.statistics().occupied == 0
    assert [seat.is_active for seat in grid.layout()[0]] == [True, False]
    assert _grid(store)[0].statistics().occupied == 0
