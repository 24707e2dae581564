from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from ...classroom.grid import SeatGrid
from ...classroom.roster import StudentRoster
from ...core.assignment import Assignment
from ...core.config import DEFAULT_SETTINGS, LotterySettings
from ...core.errors import ErrorKind, Result
from ...core.models import Seat, SeatLayout, Student
from ...engine.lottery import LotteryEngine, LotteryStatistics
from ...storage.backends import JsonFileStore, MemoryStore
from ...storage.interfaces import KeyValueStore, StorageError
from ...storage.repository import ClassroomRepository

__all__ = ["ClassroomService"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _persistence_failure(exc: StorageError) -> Result[T]:
    return Result.failure(ErrorKind.PERSISTENCE_FAILED, f"{ErrorKind.PERSISTENCE_FAILED.default_message} ({exc})")


class ClassroomService:
    """Owns classroom state independent of the presentation layer.

    Roster, grid and engine are composed here rather than living as module
    globals; the presentation layer holds one service per classroom and calls
    into it for every action.  A lock serialises calls so a threaded web
    server still observes a single logical actor.
    """

    def __init__(
        self,
        repository: ClassroomRepository,
        *,
        engine: LotteryEngine | None = None,
        settings: LotterySettings = DEFAULT_SETTINGS,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._engine = engine or LotteryEngine()
        self._lock = threading.RLock()
        self._roster = StudentRoster(repository, settings)
        self._grid = SeatGrid(repository, settings)
        self._current = self._load_current()

    @classmethod
    def from_settings(
        cls,
        settings: LotterySettings = DEFAULT_SETTINGS,
        *,
        store: KeyValueStore | None = None,
        engine: LotteryEngine | None = None,
    ) -> ClassroomService:
        if store is None:
            store = JsonFileStore(settings.storage_dir) if settings.storage_dir else MemoryStore()
        repository = ClassroomRepository(store, history_limit=settings.history_limit)
        return cls(repository, engine=engine, settings=settings)

    def _load_current(self) -> Assignment | None:
        try:
            return self._repository.load_current_assignment()
        except StorageError:
            logger.warning("Failed to load the current assignment", exc_info=True)
            return None

    def _locked(self, action: Callable[[], T]) -> T:
        with self._lock:
            return action()

    # ---------------------------------------------------------------- readers
    @property
    def settings(self) -> LotterySettings:
        return self._settings

    @property
    def engine(self) -> LotteryEngine:
        return self._engine

    @property
    def roster(self) -> StudentRoster:
        return self._roster

    @property
    def grid(self) -> SeatGrid:
        return self._grid

    def students(self) -> list[Student]:
        return self._locked(lambda: self._roster.students)

    def layout(self) -> SeatLayout:
        return self._locked(self._grid.layout)

    def current_assignment(self) -> Assignment | None:
        return self._current

    # --------------------------------------------------------------- students
    def add_student(self, name: str) -> Result[Student]:
        return self._locked(lambda: self._roster.add(name))

    def generate_students(self, count: int) -> Result[list[Student]]:
        return self._locked(lambda: self._roster.generate_by_number(count))

    def remove_student(self, student_id: str) -> Result[None]:
        return self._locked(lambda: self._roster.remove(student_id))

    def rename_student(self, student_id: str, name: str) -> Result[Student]:
        return self._locked(lambda: self._roster.rename(student_id, name))

    def clear_students(self) -> Result[None]:
        return self._locked(self._roster.clear_all)

    def sort_students_by_name(self, ascending: bool = True) -> Result[None]:
        return self._locked(lambda: self._roster.sort_by_name(ascending))

    def sort_students_number_first(self) -> Result[None]:
        return self._locked(self._roster.sort_number_first)

    # ------------------------------------------------------------------ seats
    def create_layout(self, rows: int, cols: int) -> Result[None]:
        return self._locked(lambda: self._grid.create_layout(rows, cols))

    def toggle_seat(self, row: int, col: int) -> Result[Seat]:
        return self._locked(lambda: self._grid.toggle(row, col))

    def set_seat_active(self, row: int, col: int, active: bool) -> Result[Seat]:
        return self._locked(lambda: self._grid.set_active(row, col, active))

    def activate_all_seats(self) -> Result[None]:
        return self._locked(self._grid.activate_all)

    def deactivate_all_seats(self) -> Result[None]:
        return self._locked(self._grid.deactivate_all)

    def clear_layout(self) -> Result[None]:
        return self._locked(self._grid.clear_layout)

    def validate_layout(self) -> Result[int]:
        return self._locked(lambda: self._grid.validate_against(self._roster.count))

    # ---------------------------------------------------------------- lottery
    def run_lottery(self) -> Result[Assignment]:
        """Draw seats for the live roster and store the result."""

        with self._lock:
            if not self._grid.has_layout():
                return Result.failure(ErrorKind.NO_LAYOUT)
            drawn = self._engine.perform_lottery(self._roster.students, self._grid.layout())
            if not drawn.ok:
                logger.info("Lottery rejected", extra={"kind": drawn.kind.value if drawn.kind else None})
                return drawn
            assignment = drawn.unwrap()
            # Occupants restored from an older result must not outlive it.
            previous_layout = self._grid.layout()
            vacated = self._grid.vacate_all()
            if not vacated.ok:
                return Result(error=vacated.error)
            try:
                self._repository.save_assignment(assignment)
            except StorageError as exc:
                logger.warning("Saving the assignment failed", exc_info=True)
                self._restore(None, previous_layout)
                return _persistence_failure(exc)
            self._current = assignment
            logger.info("Lottery stored", extra={"assignment_id": assignment.id})
            return Result.success(assignment)

    def save_current(self) -> Result[Assignment]:
        """Append the current result to the history again."""

        with self._lock:
            if self._current is None:
                return Result.failure(ErrorKind.NO_ASSIGNMENT)
            try:
                self._repository.save_assignment(self._current)
            except StorageError as exc:
                logger.warning("Saving the assignment failed", exc_info=True)
                return _persistence_failure(exc)
            return Result.success(self._current)

    def statistics(self) -> LotteryStatistics:
        return self._engine.statistics(self._current)

    def history(self) -> Result[list[Assignment]]:
        """Stored results, oldest first."""

        with self._lock:
            try:
                return Result.success(self._repository.history())
            except StorageError as exc:
                return _persistence_failure(exc)

    def load_from_history(self, assignment_id: str, *, confirm: bool = False) -> Result[Assignment]:
        """Replace the live roster and grid with a stored result's snapshots.

        Destructive, so the caller must pass ``confirm=True``.
        """

        if not confirm:
            return Result.failure(ErrorKind.CONFIRMATION_REQUIRED)
        with self._lock:
            try:
                assignment = self._repository.find_in_history(assignment_id)
            except StorageError as exc:
                return _persistence_failure(exc)
            if assignment is None:
                return Result.failure(ErrorKind.NOT_FOUND, "No stored assignment with that id.")

            previous_students = self._roster.students
            previous_layout = self._grid.layout()
            replaced = self._roster.replace_all(assignment.students)
            if not replaced.ok:
                return Result(error=replaced.error)
            replaced = self._grid.replace_layout(assignment.seat_layout)
            if not replaced.ok:
                self._restore(previous_students, None)
                return Result(error=replaced.error)
            try:
                self._repository.save_current_assignment(assignment)
            except StorageError as exc:
                logger.warning("Storing the loaded assignment failed", exc_info=True)
                self._restore(previous_students, previous_layout)
                return _persistence_failure(exc)
            self._current = assignment
            logger.info("Loaded assignment from history", extra={"assignment_id": assignment.id})
            return Result.success(assignment)

    def _restore(self, students: list[Student] | None, layout: SeatLayout | None) -> None:
        outcomes = [self._roster.replace_all(students)] if students is not None else []
        if layout is not None:
            outcomes.append(self._grid.replace_layout(layout) if layout else self._grid.clear_layout())
        for outcome in outcomes:
            if not outcome.ok:
                logger.error("Could not restore roster or grid after a failed save", extra={"kind": outcome.kind})

    def _restore_current(self, assignment: Assignment) -> None:
        try:
            self._repository.save_current_assignment(assignment)
        except StorageError:
            logger.error("Could not restore the stored current assignment", extra={"assignment_id": assignment.id})

    def clear_all_data(self) -> Result[None]:
        with self._lock:
            previous_students = self._roster.students
            previous_layout = self._grid.layout()
            outcome = self._roster.clear_all()
            if not outcome.ok:
                return outcome
            outcome = self._grid.clear_layout()
            if not outcome.ok:
                self._restore(previous_students, None)
                return outcome
            try:
                self._repository.clear_all()
            except StorageError as exc:
                logger.warning("Clearing stored data failed", exc_info=True)
                self._restore(previous_students, previous_layout)
                if self._current is not None:
                    self._restore_current(self._current)
                return _persistence_failure(exc)
            self._current = None
            return Result.success()

    # ---------------------------------------------------------------- exports
    def export_students_text(self) -> str:
        return self._locked(self._roster.export_text)

    def export_layout_text(self) -> str:
        return self._locked(self._grid.export_text)

    def export_assignment_text(self) -> Result[str]:
        if self._current is None:
            return Result.failure(ErrorKind.NO_ASSIGNMENT)
        return Result.success(self._current.to_text())

    def visualize(self) -> Result[str]:
        if self._current is None:
            return Result.failure(ErrorKind.NO_ASSIGNMENT)
        return Result.success(self._engine.visualize(self._current))
