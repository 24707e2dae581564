"""The live student roster.

Every mutating call validates first, applies the change in memory, then
persists through the injected repository.  When persisting fails the
in-memory change is rolled back so the observed and stored rosters never
diverge.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..core.config import DEFAULT_SETTINGS, LotterySettings
from ..core.errors import ErrorKind, LotteryError, Result
from ..core.models import Student
from ..storage.interfaces import StorageError
from ..storage.repository import ClassroomRepository

__all__ = ["RosterStats", "StudentRoster"]

logger = logging.getLogger(__name__)

_ID_PREFIX = "student_"
_ID_PATTERN = re.compile(r"^student_(\d+)$")
_LEADING_NUMBER = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class RosterStats:
    total: int
    number_based: int
    name_based: int

    @property
    def is_empty(self) -> bool:
        return self.total == 0


def _leading_number(name: str) -> int | None:
    match = _LEADING_NUMBER.match(name)
    return int(match.group(1)) if match else None


def _name_key(student: Student) -> tuple[str, str]:
    return student.name.casefold(), student.name


def _number_first_key(student: Student) -> tuple[int, int, int, str, str]:
    if student.is_number_based:
        value = _leading_number(student.name)
        if value is not None:
            return (0, 0, value, *_name_key(student))
        # Renamed away from a number; keep it with its group, after the numbered ones.
        return (0, 1, 0, *_name_key(student))
    return (1, 0, 0, *_name_key(student))


class StudentRoster:
    def __init__(self, repository: ClassroomRepository, settings: LotterySettings = DEFAULT_SETTINGS) -> None:
        self._repository = repository
        self._settings = settings
        self._students: list[Student] = []
        self._next_id = 1
        self._load()

    def _load(self) -> None:
        try:
            stored = self._repository.load_students()
        except StorageError:
            logger.warning("Failed to load students; starting with an empty roster", exc_info=True)
            stored = []
        seen: set[str] = set()
        for student in stored:
            if student.name in seen:
                logger.warning("Dropping stored student with duplicate name", extra={"student_id": student.id})
                continue
            seen.add(student.name)
            self._students.append(student)
        self._sync_next_id()

    def _sync_next_id(self) -> None:
        numbers = [int(m.group(1)) for m in (_ID_PATTERN.match(s.id) for s in self._students) if m]
        self._next_id = max(numbers, default=0) + 1

    def _new_id(self) -> str:
        student_id = f"{_ID_PREFIX}{self._next_id}"
        self._next_id += 1
        return student_id

    # --------------------------------------------------------------- accessors
    @property
    def students(self) -> list[Student]:
        return list(self._students)

    def get(self, student_id: str) -> Student | None:
        return next((s for s in self._students if s.id == student_id), None)

    def __len__(self) -> int:
        return len(self._students)

    @property
    def count(self) -> int:
        return len(self._students)

    def statistics(self) -> RosterStats:
        number_based = sum(1 for s in self._students if s.is_number_based)
        return RosterStats(
            total=len(self._students),
            number_based=number_based,
            name_based=len(self._students) - number_based,
        )

    def export_text(self) -> str:
        if not self._students:
            return "No students registered.\n"
        lines = [f"Student list ({len(self._students)} total)", "=" * 30, ""]
        for index, student in enumerate(self._students, start=1):
            tag = "[number]" if student.is_number_based else "[name]"
            lines.append(f"{index}. {student.name} {tag}")
        stats = self.statistics()
        lines.extend(["", "-" * 20, f"Typed names: {stats.name_based}", f"Generated numbers: {stats.number_based}"])
        return "\n".join(lines) + "\n"

    # -------------------------------------------------------------- validation
    def _is_taken(self, name: str, exclude_id: str | None = None) -> bool:
        return any(s.name == name and s.id != exclude_id for s in self._students)

    def _validate_name(self, name: object, exclude_id: str | None = None) -> Result[str]:
        if not isinstance(name, str) or not name.strip():
            return Result.failure(ErrorKind.EMPTY_NAME)
        trimmed = name.strip()
        if self._is_taken(trimmed, exclude_id):
            return Result.failure(ErrorKind.DUPLICATE_NAME)
        return Result.success(trimmed)

    # -------------------------------------------------------------- persisting
    def _snapshot(self) -> tuple[list[Student], int]:
        return list(self._students), self._next_id

    def _persist(self, snapshot: tuple[list[Student], int]) -> LotteryError | None:
        try:
            self._repository.save_students(self._students)
        except StorageError as exc:
            self._students, self._next_id = snapshot
            logger.warning("Saving students failed; change rolled back", exc_info=True)
            return LotteryError.of(ErrorKind.PERSISTENCE_FAILED, f"{ErrorKind.PERSISTENCE_FAILED.default_message} ({exc})")
        return None

    # ---------------------------------------------------------------- mutators
    def add(self, name: str) -> Result[Student]:
        checked = self._validate_name(name)
        if not checked.ok:
            return Result(error=checked.error)
        snapshot = self._snapshot()
        student = Student(id=self._new_id(), name=checked.unwrap(), is_number_based=False)
        self._students.append(student)
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        logger.debug("Added student", extra={"student_id": student.id})
        return Result.success(student)

    def generate_by_number(self, count: int) -> Result[list[Student]]:
        """Append ``count`` students named ``1번``, ``2번``, ...

        A name already in use is probed upward until a free number is found;
        giving up after ``count + probe_slack`` aborts the whole call.
        """

        limit = self._settings.max_generated_students
        if isinstance(count, bool) or not isinstance(count, int) or not (1 <= count <= limit):
            return Result.failure(ErrorKind.INVALID_COUNT, f"Count must be a whole number between 1 and {limit}.")

        snapshot = self._snapshot()
        suffix = self._settings.number_suffix
        ceiling = count + self._settings.probe_slack
        created: list[Student] = []
        for i in range(1, count + 1):
            number = i
            while self._is_taken(f"{number}{suffix}"):
                number += 1
                if number > ceiling:
                    self._students, self._next_id = snapshot
                    logger.warning("Numbered generation exhausted free names", extra={"count": count})
                    return Result.failure(ErrorKind.NAME_COLLISION)
            student = Student(id=self._new_id(), name=f"{number}{suffix}", is_number_based=True)
            self._students.append(student)
            created.append(student)

        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        logger.debug("Generated numbered students", extra={"count": len(created)})
        return Result.success(created)

    def remove(self, student_id: str) -> Result[None]:
        index = next((i for i, s in enumerate(self._students) if s.id == student_id), None)
        if index is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Student not found.")
        snapshot = self._snapshot()
        del self._students[index]
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def rename(self, student_id: str, new_name: str) -> Result[Student]:
        index = next((i for i, s in enumerate(self._students) if s.id == student_id), None)
        if index is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Student not found.")
        checked = self._validate_name(new_name, exclude_id=student_id)
        if not checked.ok:
            return Result(error=checked.error)
        snapshot = self._snapshot()
        renamed = self._students[index].renamed(checked.unwrap())
        self._students[index] = renamed
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success(renamed)

    def clear_all(self) -> Result[None]:
        snapshot = self._snapshot()
        self._students = []
        self._next_id = 1
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def sort_by_name(self, ascending: bool = True) -> Result[None]:
        snapshot = self._snapshot()
        self._students.sort(key=_name_key, reverse=not ascending)
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def sort_number_first(self) -> Result[None]:
        snapshot = self._snapshot()
        self._students.sort(key=_number_first_key)
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def replace_all(self, students: Iterable[Student]) -> Result[None]:
        """Swap in a whole roster, e.g. one captured by a past assignment."""

        incoming: Sequence[Student] = list(students)
        ids: set[str] = set()
        names: set[str] = set()
        for student in incoming:
            if not isinstance(student, Student) or not student.id or not student.name.strip():
                return Result.failure(ErrorKind.INVALID_STUDENTS)
            if student.id in ids:
                return Result.failure(ErrorKind.INVALID_STUDENTS, f"Duplicate student id {student.id!r}.")
            if student.name in names:
                return Result.failure(ErrorKind.DUPLICATE_NAME)
            ids.add(student.id)
            names.add(student.name)

        snapshot = self._snapshot()
        self._students = list(incoming)
        self._sync_next_id()
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()
