import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.models.student import ErrorResponse, StudentCreate, StudentUpdate
from app.services.errors import ConflictError, NotFoundError, StorageError, ValidationError
from app.services.student_records import (
    apply_student_update,
    find_student,
    insert_student,
    validate_new_student,
    validate_student_update,
)
from app.services.student_store import StudentStore

router = APIRouter()
log = logging.getLogger(__name__)


def get_store(request: Request) -> StudentStore:
    """Store configured for this application at startup."""
    return request.app.state.store


@router.get("", responses={500: {"model": ErrorResponse}})
async def list_students(store: StudentStore = Depends(get_store)):
    """Get all students"""
    try:
        return await store.read()
    except StorageError:
        log.exception("Failed to read students")
        raise HTTPException(status_code=500, detail="Server Failed to read all students.")


@router.get(
    "/{student_id}",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_student(student_id: str, store: StudentStore = Depends(get_store)):
    """Get a specific student by ID"""
    try:
        students = await store.read()
    except StorageError:
        log.exception("Failed to read students")
        raise HTTPException(status_code=500, detail="Server failed to read students")

    try:
        return find_student(students, student_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Student not found")


@router.post(
    "",
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_student(payload: StudentCreate, store: StudentStore = Depends(get_store)):
    """Create a new student from id, firstName, lastName and year.

    Extra fields in the body are dropped. The id must not already be
    present in the collection with the same type and value.
    """
    try:
        student = validate_new_student(payload.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    async with store.lock:
        try:
            students = await store.read()
            insert_student(students, student)
            await store.write(students)
        except ConflictError:
            raise HTTPException(status_code=409, detail="ID already exists.")
        except StorageError:
            log.exception("Failed to add student %r", student["id"])
            raise HTTPException(status_code=500, detail="Server cannot add student")

    log.info("Created student %r", student["id"])
    return student


@router.put(
    "/{student_id}",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def update_student(
    student_id: str,
    payload: Optional[StudentUpdate] = None,
    store: StudentStore = Depends(get_store),
):
    """Update an existing student.

    Only firstName, lastName and year are written, and only when they are
    present in the body. Values are stored as sent, except that NaN and
    Infinity are refused because they cannot be written back as JSON.
    """
    changes = payload.model_dump(exclude_unset=True) if payload is not None else {}
    try:
        validate_student_update(changes)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    async with store.lock:
        try:
            students = await store.read()
            student = apply_student_update(find_student(students, student_id), changes)
            await store.write(students)
        except NotFoundError:
            raise HTTPException(status_code=404, detail="Student not found.")
        except StorageError:
            log.exception("Failed to update student %s", student_id)
            raise HTTPException(status_code=500, detail="Server cannot update student.")

    log.info("Updated student %s (%s)", student_id, ", ".join(changes) or "no fields")
    return student
