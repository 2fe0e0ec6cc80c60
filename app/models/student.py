from pydantic import BaseModel
from typing import Any


class StudentCreate(BaseModel):
    # Values are kept exactly as decoded from JSON; checks happen in
    # app.services.student_records.validate_new_student
    id: Any = None
    firstName: Any = None
    lastName: Any = None
    year: Any = None


class StudentUpdate(BaseModel):
    firstName: Any = None
    lastName: Any = None
    year: Any = None


class ErrorResponse(BaseModel):
    error: str
