"""The live seat grid.

Seats are frozen values; the grid replaces cells instead of mutating them,
so every accessor can hand out plain list copies without leaking state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..core.assignment import round_half_up
from ..core.config import DEFAULT_SETTINGS, LotterySettings
from ..core.errors import ErrorKind, LotteryError, Result
from ..core.models import Seat, SeatLayout, copy_layout
from ..storage.interfaces import StorageError
from ..storage.repository import ClassroomRepository

__all__ = ["GridStats", "SeatGrid"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridStats:
    total: int
    active: int
    inactive: int
    occupied: int
    empty: int
    activation_rate: int
    occupancy_rate: int


_EMPTY_STATS = GridStats(total=0, active=0, inactive=0, occupied=0, empty=0, activation_rate=0, occupancy_rate=0)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SeatGrid:
    def __init__(self, repository: ClassroomRepository, settings: LotterySettings = DEFAULT_SETTINGS) -> None:
        self._repository = repository
        self._settings = settings
        self._seats: SeatLayout = []
        self._load()

    def _load(self) -> None:
        try:
            stored = self._repository.load_seat_layout()
        except StorageError:
            logger.warning("Failed to load seat layout; starting without one", exc_info=True)
            stored = None
        if stored and self._dimensions_ok(len(stored), len(stored[0])):
            self._seats = stored

    def _dimensions_ok(self, rows: object, cols: object) -> bool:
        limit = self._settings.max_grid_dimension
        return _is_int(rows) and _is_int(cols) and 1 <= rows <= limit and 1 <= cols <= limit  # type: ignore[operator]

    # --------------------------------------------------------------- accessors
    @property
    def rows(self) -> int:
        return len(self._seats)

    @property
    def cols(self) -> int:
        return len(self._seats[0]) if self._seats else 0

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.rows, self.cols

    def has_layout(self) -> bool:
        return bool(self._seats)

    def layout(self) -> SeatLayout:
        return copy_layout(self._seats)

    def _in_bounds(self, row: object, col: object) -> bool:
        return _is_int(row) and _is_int(col) and 0 <= row < self.rows and 0 <= col < self.cols  # type: ignore[operator]

    def seat(self, row: int, col: int) -> Seat | None:
        if not self._in_bounds(row, col):
            return None
        return self._seats[row][col]

    def available_seats(self) -> list[Seat]:
        """Active seats in row-major order."""

        return [seat for row in self._seats for seat in row if seat.is_active]

    @property
    def available_count(self) -> int:
        return len(self.available_seats())

    @property
    def total_count(self) -> int:
        return self.rows * self.cols

    def statistics(self) -> GridStats:
        if not self._seats:
            return _EMPTY_STATS
        total = self.total_count
        active = self.available_count
        occupied = sum(1 for row in self._seats for seat in row if seat.is_active and not seat.is_empty)
        return GridStats(
            total=total,
            active=active,
            inactive=total - active,
            occupied=occupied,
            empty=active - occupied,
            activation_rate=round_half_up(active / total * 100) if total else 0,
            occupancy_rate=round_half_up(occupied / active * 100) if active else 0,
        )

    def validate_against(self, student_count: int) -> Result[int]:
        """Check the grid can seat ``student_count``; the value is the active seat count."""

        if not self._seats:
            return Result.failure(ErrorKind.NO_LAYOUT)
        available = self.available_count
        if available < student_count:
            return Result.failure(
                ErrorKind.INSUFFICIENT_SEATS,
                f"Only {available} active seats for {student_count} students.",
            )
        return Result.success(available)

    def export_text(self) -> str:
        if not self._seats:
            return "No seat layout has been created.\n"
        stats = self.statistics()
        lines = [f"Seat layout ({self.rows} rows × {self.cols} cols)", "=" * 40, ""]
        for r, row in enumerate(self._seats, start=1):
            glyphs = " ".join(("○" if seat.is_empty else "●") if seat.is_active else "×" for seat in row)
            lines.append(f"Row {r}: {glyphs}")
        lines.extend(
            [
                "",
                "Legend: ○ = active empty seat, ● = occupied seat, × = inactive seat",
                "",
                "-" * 30,
                f"Total seats: {stats.total}",
                f"Active seats: {stats.active}",
                f"Inactive seats: {stats.inactive}",
                f"Activation rate: {stats.activation_rate}%",
            ]
        )
        return "\n".join(lines) + "\n"

    # -------------------------------------------------------------- persisting
    def _persist(self, snapshot: SeatLayout) -> LotteryError | None:
        try:
            if self._seats:
                self._repository.save_seat_layout(self._seats)
            else:
                self._repository.clear_seat_layout()
        except StorageError as exc:
            self._seats = snapshot
            logger.warning("Saving seat layout failed; change rolled back", exc_info=True)
            return LotteryError.of(ErrorKind.PERSISTENCE_FAILED, f"{ErrorKind.PERSISTENCE_FAILED.default_message} ({exc})")
        return None

    def _check_position(self, row: int, col: int) -> LotteryError | None:
        if not self._seats:
            return LotteryError.of(ErrorKind.NO_LAYOUT)
        if not self._in_bounds(row, col):
            return LotteryError.of(ErrorKind.INVALID_POSITION, f"Seat ({row}, {col}) is outside the {self.rows}×{self.cols} grid.")
        return None

    # ---------------------------------------------------------------- mutators
    def create_layout(self, rows: int, cols: int) -> Result[None]:
        if not self._dimensions_ok(rows, cols):
            limit = self._settings.max_grid_dimension
            return Result.failure(ErrorKind.INVALID_DIMENSIONS, f"Rows and columns must be whole numbers between 1 and {limit}.")
        snapshot = self._seats
        self._seats = [[Seat(row=r, col=c) for c in range(cols)] for r in range(rows)]
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        logger.debug("Created seat layout", extra={"rows": rows, "cols": cols})
        return Result.success()

    def set_active(self, row: int, col: int, active: bool) -> Result[Seat]:
        error = self._check_position(row, col)
        if error:
            return Result(error=error)
        snapshot = copy_layout(self._seats)
        updated = self._seats[row][col].with_active(bool(active))
        self._seats[row][col] = updated
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success(updated)

    def toggle(self, row: int, col: int) -> Result[Seat]:
        error = self._check_position(row, col)
        if error:
            return Result(error=error)
        return self.set_active(row, col, not self._seats[row][col].is_active)

    def _set_all(self, active: bool) -> Result[None]:
        if not self._seats:
            return Result.failure(ErrorKind.NO_LAYOUT)
        snapshot = self._seats
        self._seats = [[seat.with_active(active) for seat in row] for row in self._seats]
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def vacate_all(self) -> Result[None]:
        """Remove every occupant, keeping each seat's active state."""

        if not any(not seat.is_empty for row in self._seats for seat in row):
            return Result.success()
        snapshot = self._seats
        self._seats = [[seat.with_occupant(None) for seat in row] for row in self._seats]
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def activate_all(self) -> Result[None]:
        return self._set_all(True)

    def deactivate_all(self) -> Result[None]:
        return self._set_all(False)

    def clear_layout(self) -> Result[None]:
        snapshot = self._seats
        self._seats = []
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()

    def replace_layout(self, layout: Iterable[Iterable[Seat]]) -> Result[None]:
        """Swap in a whole grid, e.g. one captured by a past assignment."""

        incoming = [list(row) for row in layout]
        if not incoming or not self._dimensions_ok(len(incoming), len(incoming[0])):
            return Result.failure(ErrorKind.INVALID_DIMENSIONS)
        width = len(incoming[0])
        for r, row in enumerate(incoming):
            if len(row) != width:
                return Result.failure(ErrorKind.INVALID_SEATS, "Seat layout must be rectangular.")
            for c, seat in enumerate(row):
                if not isinstance(seat, Seat) or (seat.row, seat.col) != (r, c):
                    return Result.failure(ErrorKind.INVALID_SEATS, f"Unexpected seat at ({r}, {c}).")
        snapshot = self._seats
        self._seats = incoming
        error = self._persist(snapshot)
        if error:
            return Result(error=error)
        return Result.success()
