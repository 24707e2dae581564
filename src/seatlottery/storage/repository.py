from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..core.assignment import Assignment
from ..core.models import SeatLayout, Student
from .interfaces import KeyValueStore, StorageSerializationError
from .schemas import AssignmentRecord, parse_layout, parse_students

__all__ = ["ClassroomRepository", "StorageKeys"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageKeys:
    students: str = "classroom_lottery_students"
    seat_layout: str = "classroom_lottery_seat_layout"
    current_assignment: str = "classroom_lottery_assignments"
    history: str = "classroom_lottery_assignment_history"

    def all(self) -> tuple[str, ...]:
        return (self.students, self.seat_layout, self.current_assignment, self.history)


def _parse_assignment(raw: object) -> Assignment:
    return AssignmentRecord.model_validate(raw).to_model()


class ClassroomRepository:
    """Typed access to the four storage namespaces.

    Writes propagate :class:`~seatlottery.storage.interfaces.StorageError` so
    callers can roll back.  Reads discard records that fail the shape checks
    in :mod:`seatlottery.storage.schemas` and report them as absent.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        history_limit: int = 10,
        keys: StorageKeys | None = None,
    ) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be positive")
        self._store = store
        self._history_limit = history_limit
        self._keys = keys or StorageKeys()

    @property
    def keys(self) -> StorageKeys:
        return self._keys

    @property
    def history_limit(self) -> int:
        return self._history_limit

    def _load_raw(self, key: str) -> object | None:
        try:
            return self._store.load(key)
        except StorageSerializationError:
            logger.warning("Discarding undecodable record", extra={"key": key})
            return None

    # ----------------------------------------------------------------- students
    def save_students(self, students: Sequence[Student]) -> None:
        self._store.save(self._keys.students, [student.to_dict() for student in students])

    def load_students(self) -> list[Student]:
        raw = self._load_raw(self._keys.students)
        if raw is None:
            return []
        try:
            return parse_students(raw)
        except ValueError as exc:
            logger.warning("Invalid student data found; starting with an empty roster", extra={"error": str(exc)})
            return []

    # -------------------------------------------------------------- seat layout
    def save_seat_layout(self, layout: SeatLayout) -> None:
        self._store.save(self._keys.seat_layout, [[seat.to_dict() for seat in row] for row in layout])

    def load_seat_layout(self) -> SeatLayout | None:
        raw = self._load_raw(self._keys.seat_layout)
        if raw is None:
            return None
        try:
            return parse_layout(raw)
        except ValueError:
            logger.warning("Invalid seat layout data found; ignoring it", extra={"key": self._keys.seat_layout})
            return None

    def clear_seat_layout(self) -> None:
        self._store.remove(self._keys.seat_layout)

    # -------------------------------------------------------------- assignments
    def save_assignment(self, assignment: Assignment) -> None:
        """Store ``assignment`` as current and append it to the capped history."""

        history = self._load_history_raw()
        previous = self._load_raw(self._keys.current_assignment)
        payload = assignment.to_dict()
        self._store.save(self._keys.current_assignment, payload)
        history.append(payload)
        if len(history) > self._history_limit:
            del history[: len(history) - self._history_limit]
        try:
            self._store.save(self._keys.history, history)
        except Exception:
            self._restore_current(previous)
            raise
        logger.debug("Saved assignment", extra={"assignment_id": assignment.id, "history": len(history)})

    def _restore_current(self, previous: object | None) -> None:
        if previous is None:
            self._store.remove(self._keys.current_assignment)
        else:
            self._store.save(self._keys.current_assignment, previous)

    def load_current_assignment(self) -> Assignment | None:
        raw = self._load_raw(self._keys.current_assignment)
        if raw is None:
            return None
        try:
            return _parse_assignment(raw)
        except ValueError:
            logger.warning("Invalid current assignment found; ignoring it")
            return None

    def save_current_assignment(self, assignment: Assignment) -> None:
        """Store ``assignment`` as current without touching the history."""

        self._store.save(self._keys.current_assignment, assignment.to_dict())

    def clear_current_assignment(self) -> None:
        self._store.remove(self._keys.current_assignment)

    def _load_history_raw(self) -> list[object]:
        raw = self._load_raw(self._keys.history)
        if not isinstance(raw, list):
            return []
        kept: list[object] = []
        for entry in raw:
            try:
                _parse_assignment(entry)
            except ValueError:
                continue
            kept.append(entry)
        return kept

    def history(self) -> list[Assignment]:
        """Valid stored assignments, oldest first."""

        raw = self._load_raw(self._keys.history)
        if not isinstance(raw, list):
            return []
        entries: list[Assignment] = []
        for entry in raw:
            try:
                entries.append(_parse_assignment(entry))
            except ValueError:
                logger.warning("Discarding invalid history entry")
        return entries

    def find_in_history(self, assignment_id: str) -> Assignment | None:
        return next((entry for entry in self.history() if entry.id == assignment_id), None)

    def clear_all(self) -> None:
        for key in self._keys.all():
            self._store.remove(key)
