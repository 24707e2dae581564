from __future__ import annotations

import random

from seatlottery.core.config import LotterySettings
from seatlottery.core.errors import ErrorKind
from seatlottery.engine.lottery import LotteryEngine
from seatlottery.features.classroom import ClassroomService
from seatlottery.storage.backends import JsonFileStore, MemoryStore
from seatlottery.storage.interfaces import StorageUnavailable
from seatlottery.storage.repository import ClassroomRepository


def _service(store: MemoryStore | None = None, seed: int = 5) -> tuple[ClassroomService, MemoryStore]:
    store = store or MemoryStore()
    service = ClassroomService.from_settings(store=store, engine=LotteryEngine(random.Random(seed)))
    return service, store


def _seated(service: ClassroomService) -> None:
    for name in ("Kim", "Lee", "Park"):
        service.add_student(name).unwrap()
    service.create_layout(2, 2).unwrap()


def test_run_lottery_stores_current_and_history():
    service, store = _service()
    _seated(service)

    assignment = service.run_lottery().unwrap()
    assert service.current_assignment() == assignment
    assert service.statistics().assignment_rate == 100
    assert [entry.id for entry in service.history().unwrap()] == [assignment.id]

    reopened, _ = _service(store)
    assert reopened.current_assignment() == assignment
    assert len(reopened.students()) == 3


def test_lottery_preconditions():
    service, _ = _service()
    service.add_student("Kim").unwrap()
    assert service.run_lottery().kind is ErrorKind.NO_LAYOUT
    service.create_layout(1, 1).unwrap()
    service.add_student("Lee").unwrap()
    assert service.run_lottery().kind is ErrorKind.INSUFFICIENT_SEATS
    assert service.validate_layout().kind is ErrorKind.INSUFFICIENT_SEATS
    service.clear_students().unwrap()
    assert service.run_lottery().kind is ErrorKind.NO_STUDENTS
    assert service.current_assignment() is None


def test_lottery_persistence_failure_keeps_previous_result():
    service, store = _service()
    _seated(service)
    first = service.run_lottery().unwrap()
    store.available = False
    assert service.run_lottery().kind is ErrorKind.PERSISTENCE_FAILED
    assert service.current_assignment() == first


def test_results_require_an_assignment():
    service, _ = _service()
    assert service.save_current().kind is ErrorKind.NO_ASSIGNMENT
    assert service.export_assignment_text().kind is ErrorKind.NO_ASSIGNMENT
    assert service.visualize().kind is ErrorKind.NO_ASSIGNMENT


def test_save_current_appends_again():
    service, _ = _service()
    _seated(service)
    assignment = service.run_lottery().unwrap()
    service.save_current().unwrap()
    assert [entry.id for entry in service.history().unwrap()] == [assignment.id, assignment.id]


def test_load_from_history_restores_roster_and_layout():
    service, _ = _service()
    _seated(service)
    assignment = service.run_lottery().unwrap()

    service.clear_students().unwrap()
    service.add_student("Choi").unwrap()
    service.create_layout(3, 3).unwrap()

    assert service.load_from_history(assignment.id).kind is ErrorKind.CONFIRMATION_REQUIRED
    assert service.load_from_history("assignment_0_missing", confirm=True).kind is ErrorKind.NOT_FOUND

    loaded = service.load_from_history(assignment.id, confirm=True).unwrap()
    assert loaded == assignment
    assert [s.name for s in service.students()] == ["Kim", "Lee", "Park"]
    assert service.grid.dimensions == (2, 2)
    occupied = [seat for row in service.layout() for seat in row if seat.occupant is not None]
    assert len(occupied) == 3
    assert len(service.history().unwrap()) == 1


def test_load_from_history_rolls_back_on_storage_failure(monkeypatch):
    service, _ = _service()
    _seated(service)
    assignment = service.run_lottery().unwrap()
    service.clear_students().unwrap()
    service.add_student("Choi").unwrap()

    def refuse(_assignment: object) -> None:
        raise StorageUnavailable("down")

    monkeypatch.setattr(service._repository, "save_current_assignment", refuse)
    result = service.load_from_history(assignment.id, confirm=True)
    assert result.kind is ErrorKind.PERSISTENCE_FAILED
    assert [s.name for s in service.students()] == ["Choi"]
    assert service.grid.dimensions == (2, 2)
    assert all(seat.occupant is None for row in service.layout() for seat in row)


def test_exports_and_visualisation():
    service, _ = _service()
    _seated(service)
    service.run_lottery().unwrap()
    assert "Student list (3 total)" in service.export_students_text()
    assert "Seat layout (2 rows × 2 cols)" in service.export_layout_text()
    assert "Total students: 3" in service.export_assignment_text().unwrap()
    assert service.visualize().unwrap().startswith("Seat assignment visualization")


def test_clear_all_data():
    service, store = _service()
    _seated(service)
    service.run_lottery().unwrap()
    service.clear_all_data().unwrap()
    assert service.students() == []
    assert not service.grid.has_layout()
    assert service.current_assignment() is None
    assert store.keys() == []


def test_from_settings_uses_json_files_when_configured(tmp_path):
    settings = LotterySettings(storage_dir=tmp_path)
    service = ClassroomService.from_settings(settings)
    service.add_student("Kim").unwrap()
    assert (tmp_path / "classroom_lottery_students.json").exists()
    reopened = ClassroomService(ClassroomRepository(JsonFileStore(tmp_path)))
    assert [s.name for s in reopened.students()] == ["Kim"]


def _live_occupants(service: ClassroomService) -> set[str]:
    return {seat.occupant.id for row in service.layout() for seat in row if seat.occupant is not None}


def test_new_lottery_clears_occupants_restored_from_history():
    service, store = _service()
    _seated(service)
    first = service.run_lottery().unwrap()
    service.load_from_history(first.id, confirm=True).unwrap()
    assert _live_occupants(service) == {"student_1", "student_2", "student_3"}

    service.remove_student("student_3").unwrap()
    second = service.run_lottery().unwrap()
    assert _live_occupants(service) <= {s.id for s in second.students}
    assert service.grid.statistics().occupied == 0
    text = service.export_layout_text()
    assert "Row 1: ○ ○" in text and "Row 2: ○ ○" in text
    assert not _live_occupants(_service(store)[0])


def test_failed_lottery_save_keeps_restored_occupants(monkeypatch):
    service, _ = _service()
    _seated(service)
    first = service.run_lottery().unwrap()
    service.load_from_history(first.id, confirm=True).unwrap()

    def refuse(_assignment: object) -> None:
        raise StorageUnavailable("down")

    monkeypatch.setattr(service._repository, "save_assignment", refuse)
    assert service.run_lottery().kind is ErrorKind.PERSISTENCE_FAILED
    assert service.current_assignment() == first
    assert _live_occupants(service) == {"student_1", "student_2", "student_3"}


def test_clear_all_data_restores_state_when_storage_fails(monkeypatch):
    service, _ = _service()
    _seated(service)
    assignment = service.run_lottery().unwrap()

    def refuse() -> None:
        raise StorageUnavailable("down")

    monkeypatch.setattr(service._repository, "clear_all", refuse)
    assert service.clear_all_data().kind is ErrorKind.PERSISTENCE_FAILED
    assert [s.name for s in service.students()] == ["Kim", "Lee", "Park"]
    assert service.grid.dimensions == (2, 2)
    assert service.current_assignment() == assignment


def test_clear_all_data_restores_roster_when_layout_clear_fails(monkeypatch):
    service, store = _service()
    _seated(service)

    def refuse() -> None:
        raise StorageUnavailable("down")

    monkeypatch.setattr(service._repository, "clear_seat_layout", refuse)
    assert service.clear_all_data().kind is ErrorKind.PERSISTENCE_FAILED
    assert [s.name for s in service.students()] == ["Kim", "Lee", "Park"]
    assert service.grid.dimensions == (2, 2)
    assert [s.name for s in _service(store)[0].students()] == ["Kim", "Lee", "Park"]
