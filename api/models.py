"""
API request and response models for StaffDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
employees/models.py, which own the internal domain representation.

Request models are deliberately loose: every field is optional and only
type-coerced. Presence, length, format, range and enum rules belong to
core/validation.py so that one table decides which error surfaces first.
The employee body model lives in employees/models.py because it is applied
inside EmployeeService, after the authorization gate.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import User
from employees.models import Employee

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    username_or_email: Optional[str] = None
    password: Optional[str] = None


class SignupRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public shape of a principal. The password hash is never included."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str
    last_name: str
    email: str
    gender: Optional[str] = None
    designation: str
    salary: float
    date_of_joining: str
    department: str
    employee_photo: Optional[str] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_employee(cls, employee: Employee) -> "EmployeeResponse":
        return cls(
            id=employee.id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            email=employee.email,
            gender=employee.gender,
            designation=employee.designation,
            salary=employee.salary,
            date_of_joining=employee.date_of_joining,
            department=employee.department,
            employee_photo=employee.employee_photo,
            created_at=employee.created_at,
            updated_at=employee.updated_at,
        )


class MessageResponse(BaseModel):
    message: str


class UploadResponse(BaseModel):
    success: bool = True
    url: str
    asset_id: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
