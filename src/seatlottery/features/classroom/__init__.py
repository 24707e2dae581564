"""Classroom feature: service layer, schemas, and API router."""

from .router import create_classroom_router
from .schemas import (
    AssignmentPayload,
    ErrorPayload,
    LayoutPayload,
    RosterPayload,
    SeatPayload,
    StudentPayload,
)
from .service import ClassroomService

__all__ = [
    "AssignmentPayload",
    "ClassroomService",
    "ErrorPayload",
    "LayoutPayload",
    "RosterPayload",
    "SeatPayload",
    "StudentPayload",
    "create_classroom_router",
]
