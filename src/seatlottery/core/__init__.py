"""Value types, results and settings shared by every layer."""

from .assignment import Assignment, AssignmentStats
from .config import DEFAULT_SETTINGS, LotterySettings
from .errors import ErrorCategory, ErrorKind, LotteryError, Result, ResultError
from .models import Seat, SeatLayout, SeatPairing, SeatPosition, Student

__all__ = [
    "Assignment",
    "AssignmentStats",
    "DEFAULT_SETTINGS",
    "ErrorCategory",
    "ErrorKind",
    "LotteryError",
    "LotterySettings",
    "Result",
    "ResultError",
    "Seat",
    "SeatLayout",
    "SeatPairing",
    "SeatPosition",
    "Student",
]
