"""
Registrar Backend — Student Route Handlers
============================================

What:  The five CRUD endpoints on the `/students` collection.
How:   Each handler runs Parse → Validate → (existence pre-check) → Invoke →
       Map. Failures are raised as kind-tagged exceptions and rendered by the
       handler registered in main.py; successes return the student JSON.

Route Table:
    POST   /students/        create   201 | 400, 500
    GET    /students/        list     200 | 500
    GET    /students/{id}    get      200 | 400, 404, 500
    PUT    /students/{id}    update   200 | 400, 404, 500
    DELETE /students/{id}    delete   204 | 400, 404, 500

The repository is taken from `app.state`, where the application factory
placed it; handlers never reach for a module-level database handle.
"""

import json
import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from fastapi import APIRouter, Depends, Request, Response, status

from registrar.exceptions import StorageError, ValidationError
from registrar.schemas.student import (
    ErrorResponse,
    StudentPayload,
    StudentResponse,
)
from registrar.services.student_repository import StudentRepository
from registrar.validation import is_zero_time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])

_ID_PATTERN = re.compile(r"^[0-9]+$")
# Largest id a PostgreSQL BIGINT column can hold
MAX_STUDENT_ID = 2**63 - 1


# ── Dependencies & helpers ────────────────────────────────────────────────

def get_student_repository(request: Request) -> StudentRepository:
    """FastAPI dependency returning the repository built by create_app()."""
    return request.app.state.student_repository


def parse_student_id(raw: str) -> int:
    """
    Parses the `{id}` path segment as a non-negative integer.

    Raises:
        ValidationError: signs, whitespace, non-digits or values beyond BIGINT
    """
    if not _ID_PATTERN.match(raw):
        raise ValidationError(message="Invalid student ID")
    student_id = int(raw)
    if student_id > MAX_STUDENT_ID:
        raise ValidationError(message="Invalid student ID")
    return student_id


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Decodes the request body, which must be a JSON object."""
    raw = await request.body()
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ValidationError(message="Invalid JSON body", details=str(e)) from e
    if not isinstance(body, dict):
        raise ValidationError(
            message="Invalid JSON body",
            details="expected a JSON object",
        )
    return body


@contextmanager
def storage_failure(message: str) -> Iterator[None]:
    """Re-raises storage errors under an operation-specific message."""
    try:
        yield
    except StorageError as e:
        raise e.relabel(message) from e


_ERRORS = {
    400: {"description": "Invalid id, malformed JSON or failed validation", "model": ErrorResponse},
    404: {"description": "Student not found", "model": ErrorResponse},
    500: {"description": "Database error", "model": ErrorResponse},
}


# ── Handlers ──────────────────────────────────────────────────────────────

@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_model=StudentResponse,
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="Create a new student",
)
async def create_student(
    request: Request,
    students: StudentRepository = Depends(get_student_repository),
) -> StudentResponse:
    """
    Creates a student. `enrolled_at` defaults to today and `created_at` to
    now when omitted; a duplicate active email is reported as a 500.
    """
    payload = StudentPayload.from_json(await read_json_object(request))

    with storage_failure("Failed to create student"):
        student = await students.create(payload.to_student())

    return StudentResponse.model_validate(student)


@router.get(
    "/",
    response_model=List[StudentResponse],
    responses={500: _ERRORS[500]},
    summary="List all students",
)
async def list_students(
    students: StudentRepository = Depends(get_student_repository),
) -> List[StudentResponse]:
    with storage_failure("Failed to retrieve students"):
        records = await students.list_all()

    return [StudentResponse.model_validate(s) for s in records]


@router.get(
    "/{student_id}",
    response_model=StudentResponse,
    responses=_ERRORS,
    summary="Get a student by ID",
)
async def get_student(
    student_id: str,
    students: StudentRepository = Depends(get_student_repository),
) -> StudentResponse:
    sid = parse_student_id(student_id)

    with storage_failure("Failed to retrieve student"):
        student = await students.get_by_id(sid)

    return StudentResponse.model_validate(student)


@router.put(
    "/{student_id}",
    response_model=StudentResponse,
    responses=_ERRORS,
    summary="Replace an existing student",
)
async def update_student(
    student_id: str,
    request: Request,
    students: StudentRepository = Depends(get_student_repository),
) -> StudentResponse:
    """
    Replaces every client-writable field of an active student.

    The id in the path wins over any id in the body. `created_at` and
    `enrolled_at` are copied from the stored record when the payload leaves
    them unset; every other omitted field is cleared. The response echoes the
    record as written, without re-reading it.
    """
    sid = parse_student_id(student_id)
    payload = StudentPayload.from_json(await read_json_object(request))
    student = payload.to_student(student_id=sid)

    with storage_failure("Failed to check existing student"):
        existing = await students.get_by_id(sid)

    if is_zero_time(student.created_at):
        student.created_at = existing.created_at
    if is_zero_time(student.enrolled_at):
        student.enrolled_at = existing.enrolled_at

    with storage_failure("Failed to update student"):
        student = await students.update(student)

    return StudentResponse.model_validate(student)


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ERRORS,
    summary="Soft-delete a student",
)
async def delete_student(
    student_id: str,
    students: StudentRepository = Depends(get_student_repository),
) -> Response:
    sid = parse_student_id(student_id)

    with storage_failure("Failed to check existing student"):
        await students.get_by_id(sid)

    with storage_failure("Failed to delete student"):
        await students.soft_delete(sid)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
