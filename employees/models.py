"""
employees/models.py -- Domain dataclass and input model for employee records.

Employee is a pure data container with zero logic. Validation lives in
core/validation.py, orchestration in employees/service.py, persistence in
employees/store.py.

EmployeeInput is the loose body model for create and update. Every field is
optional and only type-coerced; EmployeeService applies it after the
authorization gate so a caller without a session never learns anything
about body shape.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

# Fields a caller may set on create or update. id and timestamps are owned
# by the store.
EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "gender",
    "designation",
    "salary",
    "date_of_joining",
    "department",
    "employee_photo",
)


@dataclass
class Employee:
    """An employee record.

    email is stored trimmed and lower-cased; the store enforces uniqueness.
    employee_photo is None or a hosted image URL once persisted. An inline
    data:image payload is only ever seen on input and is replaced by a URL
    before the record reaches the store.

    id is None before the record is written to the database.
    """

    first_name: str
    last_name: str
    email: str
    designation: str
    department: str
    salary: float
    date_of_joining: str  # YYYY-MM-DD
    gender: Optional[str] = None  # "Male" | "Female" | "Other"
    employee_photo: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


class EmployeeInput(BaseModel):
    """Body for POST /employees and PATCH /employees/{eid}.

    On PATCH, only fields present in the body (and not null) are applied.
    employee_photo may be a hosted URL or a data:image base64 payload.
    """

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    designation: Optional[str] = None
    salary: Optional[float] = None
    date_of_joining: Optional[str] = None
    department: Optional[str] = None
    employee_photo: Optional[str] = None
