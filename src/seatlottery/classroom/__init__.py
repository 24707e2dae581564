"""Mutable classroom state: the student roster and the seat grid."""

from .grid import GridStats, SeatGrid
from .roster import RosterStats, StudentRoster

__all__ = ["GridStats", "RosterStats", "SeatGrid", "StudentRoster"]
