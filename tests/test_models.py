from __future__ import annotations

import pytest

from seatlottery.core.errors import ErrorCategory, ErrorKind, LotteryError, Result, ResultError
from seatlottery.core.models import Seat, SeatPairing, SeatPosition, Student, copy_layout


def test_student_round_trips_through_camel_case_dict():
    student = Student(id="student_1", name="Kim", is_number_based=True)
    data = student.to_dict()
    assert data == {"id": "student_1", "name": "Kim", "isNumberBased": True}
    assert Student.from_dict(data) == student
    assert Student.from_dict({"id": "student_2", "name": "Lee"}).is_number_based is False


def test_rename_returns_new_value():
    student = Student(id="student_1", name="Kim")
    renamed = student.renamed("Park")
    assert renamed.name == "Park"
    assert renamed.id == "student_1"
    assert student.name == "Kim"


def test_seat_rejects_occupied_inactive_and_negative_positions():
    occupant = Student(id="student_1", name="Kim")
    with pytest.raises(ValueError):
        Seat(row=0, col=0, is_active=False, occupant=occupant)
    with pytest.raises(ValueError):
        Seat(row=-1, col=0)


def test_deactivating_a_seat_clears_its_occupant():
    seat = Seat(row=1, col=2).with_occupant(Student(id="student_1", name="Kim"))
    assert not seat.is_empty
    inactive = seat.with_active(False)
    assert inactive.is_active is False
    assert inactive.occupant is None
    assert inactive.with_active(True).is_empty


def test_seat_dict_shape():
    seat = Seat(row=0, col=1)
    assert seat.to_dict() == {"row": 0, "col": 1, "isActive": True, "student": None}
    assert Seat.from_dict(seat.to_dict()) == seat


def test_position_label_is_one_based():
    assert SeatPosition(1, 2).label() == "row 2, col 3"
    pairing = SeatPairing(student_id="student_3", seat_position=SeatPosition(0, 0))
    assert pairing.to_dict() == {"studentId": "student_3", "seatPosition": {"row": 0, "col": 0}}
    assert SeatPairing.from_dict(pairing.to_dict()) == pairing


def test_copy_layout_does_not_share_rows():
    layout = [[Seat(0, 0), Seat(0, 1)]]
    copied = copy_layout(layout)
    copied[0][0] = Seat(0, 0, is_active=False)
    assert layout[0][0].is_active


def test_result_helpers():
    ok = Result.success(3)
    assert ok.ok and ok.unwrap() == 3 and ok.kind is None

    failed: Result[int] = Result.failure(ErrorKind.NO_LAYOUT)
    assert not failed.ok
    assert failed.kind is ErrorKind.NO_LAYOUT
    assert failed.error is not None
    assert failed.error.message == ErrorKind.NO_LAYOUT.default_message
    with pytest.raises(ResultError) as excinfo:
        failed.unwrap()
    assert excinfo.value.error.kind is ErrorKind.NO_LAYOUT


def test_every_error_kind_has_category_and_message():
    for kind in ErrorKind:
        assert isinstance(kind.category, ErrorCategory)
        assert kind.default_message
    assert LotteryError.of(ErrorKind.PERSISTENCE_FAILED).category is ErrorCategory.PERSISTENCE
    assert LotteryError.of(ErrorKind.EMPTY_NAME, "custom").message == "custom"
