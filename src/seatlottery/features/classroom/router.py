from __future__ import annotations

from typing import Any, NoReturn, TypeVar

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from ...core.errors import ErrorCategory, ErrorKind, LotteryError, Result
from .schemas import (
    AddStudentRequest,
    AssignmentPayload,
    CreateLayoutRequest,
    ErrorPayload,
    GenerateStudentsRequest,
    HistoryPayload,
    LayoutPayload,
    LoadHistoryRequest,
    RenameStudentRequest,
    RosterPayload,
    SeatPayload,
    SeatStateRequest,
    SortStudentsRequest,
    StudentPayload,
    TextPayload,
)
from .service import ClassroomService

__all__ = ["create_classroom_router", "status_for"]

T = TypeVar("T")

_STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.PRECONDITION: 409,
    ErrorCategory.PERSISTENCE: 503,
    ErrorCategory.INTERNAL: 500,
}


def status_for(error: LotteryError) -> int:
    if error.kind is ErrorKind.NOT_FOUND:
        return 404
    return _STATUS_BY_CATEGORY[error.category]


class _ClassroomController:
    def __init__(self, service: ClassroomService) -> None:
        self.service = service

    # ------------------------------------------------------------------ helpers
    def _fail(self, error: LotteryError) -> NoReturn:
        raise HTTPException(status_for(error), ErrorPayload.from_error(error).to_dict())

    def _unwrap(self, result: Result[T]) -> T:
        if result.error is not None:
            self._fail(result.error)
        return result.value  # type: ignore[return-value]

    def _json(self, data: dict[str, Any], status_code: int = 200) -> JSONResponse:
        return JSONResponse(data, status_code=status_code)

    def _roster(self) -> JSONResponse:
        roster = self.service.roster
        return self._json(RosterPayload.build(self.service.students(), roster.statistics()).to_dict())

    def _layout(self) -> JSONResponse:
        return self._json(LayoutPayload.build(self.service.layout(), self.service.grid.statistics()).to_dict())

    # ----------------------------------------------------------------- students
    def list_students(self) -> JSONResponse:
        return self._roster()

    def add_student(self, body: AddStudentRequest) -> JSONResponse:
        student = self._unwrap(self.service.add_student(body.name))
        return self._json(StudentPayload.from_model(student).to_dict(), status_code=201)

    def generate_students(self, body: GenerateStudentsRequest) -> JSONResponse:
        created = self._unwrap(self.service.generate_students(body.count))
        return self._json({"students": [StudentPayload.from_model(s).to_dict() for s in created]}, status_code=201)

    def rename_student(self, student_id: str, body: RenameStudentRequest) -> JSONResponse:
        student = self._unwrap(self.service.rename_student(student_id, body.name))
        return self._json(StudentPayload.from_model(student).to_dict())

    def remove_student(self, student_id: str) -> JSONResponse:
        self._unwrap(self.service.remove_student(student_id))
        return self._roster()

    def clear_students(self) -> JSONResponse:
        self._unwrap(self.service.clear_students())
        return self._roster()

    def sort_students(self, body: SortStudentsRequest) -> JSONResponse:
        if body.mode == "number":
            self._unwrap(self.service.sort_students_number_first())
        else:
            self._unwrap(self.service.sort_students_by_name(body.ascending))
        return self._roster()

    def export_students(self) -> JSONResponse:
        return self._json(TextPayload(text=self.service.export_students_text()).to_dict())

    # -------------------------------------------------------------------- seats
    def get_layout(self) -> JSONResponse:
        return self._layout()

    def create_layout(self, body: CreateLayoutRequest) -> JSONResponse:
        self._unwrap(self.service.create_layout(body.rows, body.cols))
        return self._layout()

    def clear_layout(self) -> JSONResponse:
        self._unwrap(self.service.clear_layout())
        return self._layout()

    def toggle_seat(self, row: int, col: int) -> JSONResponse:
        seat = self._unwrap(self.service.toggle_seat(row, col))
        return self._json(SeatPayload.from_model(seat).to_dict())

    def set_seat(self, row: int, col: int, body: SeatStateRequest) -> JSONResponse:
        seat = self._unwrap(self.service.set_seat_active(row, col, body.active))
        return self._json(SeatPayload.from_model(seat).to_dict())

    def activate_all(self) -> JSONResponse:
        self._unwrap(self.service.activate_all_seats())
        return self._layout()

    def deactivate_all(self) -> JSONResponse:
        self._unwrap(self.service.deactivate_all_seats())
        return self._layout()

    def export_layout(self) -> JSONResponse:
        return self._json(TextPayload(text=self.service.export_layout_text()).to_dict())

    # ------------------------------------------------------------------ lottery
    def run_lottery(self) -> JSONResponse:
        assignment = self._unwrap(self.service.run_lottery())
        payload = AssignmentPayload.from_model(assignment, self.service.statistics())
        return self._json(payload.to_dict(), status_code=201)

    def current(self) -> JSONResponse:
        assignment = self.service.current_assignment()
        if assignment is None:
            self._fail(LotteryError.of(ErrorKind.NO_ASSIGNMENT))
        return self._json(AssignmentPayload.from_model(assignment, self.service.statistics()).to_dict())

    def save_current(self) -> JSONResponse:
        assignment = self._unwrap(self.service.save_current())
        return self._json(AssignmentPayload.from_model(assignment).to_dict())

    def export_current(self) -> JSONResponse:
        return self._json(TextPayload(text=self._unwrap(self.service.export_assignment_text())).to_dict())

    def visualize_current(self) -> JSONResponse:
        return self._json(TextPayload(text=self._unwrap(self.service.visualize())).to_dict())

    def history(self) -> JSONResponse:
        entries = self._unwrap(self.service.history())
        payload = HistoryPayload(entries=[AssignmentPayload.from_model(entry) for entry in entries])
        return self._json(payload.to_dict())

    def load_history(self, assignment_id: str, body: LoadHistoryRequest) -> JSONResponse:
        assignment = self._unwrap(self.service.load_from_history(assignment_id, confirm=body.confirm))
        return self._json(AssignmentPayload.from_model(assignment, self.service.statistics()).to_dict())


def create_classroom_router(service: ClassroomService) -> APIRouter:
    controller = _ClassroomController(service)
    router = APIRouter(prefix="/api/v1/classroom", tags=["classroom"])

    @router.get("/students")
    def list_students() -> JSONResponse:
        return controller.list_students()

    @router.post("/students")
    def add_student(body: AddStudentRequest) -> JSONResponse:
        return controller.add_student(body)

    @router.post("/students/generate")
    def generate_students(body: GenerateStudentsRequest) -> JSONResponse:
        return controller.generate_students(body)

    @router.post("/students/sort")
    def sort_students(body: SortStudentsRequest) -> JSONResponse:
        return controller.sort_students(body)

    @router.get("/students/export")
    def export_students() -> JSONResponse:
        return controller.export_students()

    @router.patch("/students/{student_id}")
    def rename_student(student_id: str, body: RenameStudentRequest) -> JSONResponse:
        return controller.rename_student(student_id, body)

    @router.delete("/students/{student_id}")
    def remove_student(student_id: str) -> JSONResponse:
        return controller.remove_student(student_id)

    @router.delete("/students")
    def clear_students() -> JSONResponse:
        return controller.clear_students()

    @router.get("/layout")
    def get_layout() -> JSONResponse:
        return controller.get_layout()

    @router.post("/layout")
    def create_layout(body: CreateLayoutRequest) -> JSONResponse:
        return controller.create_layout(body)

    @router.delete("/layout")
    def clear_layout() -> JSONResponse:
        return controller.clear_layout()

    @router.get("/layout/export")
    def export_layout() -> JSONResponse:
        return controller.export_layout()

    @router.post("/layout/activate-all")
    def activate_all() -> JSONResponse:
        return controller.activate_all()

    @router.post("/layout/deactivate-all")
    def deactivate_all() -> JSONResponse:
        return controller.deactivate_all()

    @router.post("/layout/seats/{row}/{col}/toggle")
    def toggle_seat(row: int, col: int) -> JSONResponse:
        return controller.toggle_seat(row, col)

    @router.put("/layout/seats/{row}/{col}")
    def set_seat(row: int, col: int, body: SeatStateRequest) -> JSONResponse:
        return controller.set_seat(row, col, body)

    @router.post("/lottery")
    def run_lottery() -> JSONResponse:
        return controller.run_lottery()

    @router.get("/assignment")
    def current_assignment() -> JSONResponse:
        return controller.current()

    @router.post("/assignment/save")
    def save_assignment() -> JSONResponse:
        return controller.save_current()

    @router.get("/assignment/export")
    def export_assignment() -> JSONResponse:
        return controller.export_current()

    @router.get("/assignment/visual")
    def visualize_assignment() -> JSONResponse:
        return controller.visualize_current()

    @router.get("/history")
    def history() -> JSONResponse:
        return controller.history()

    @router.post("/history/{assignment_id}/load")
    def load_history(assignment_id: str, body: LoadHistoryRequest) -> JSONResponse:
        return controller.load_history(assignment_id, body)

    return router
