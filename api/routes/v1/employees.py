"""
api/routes/v1/employees.py -- Employee routes for the StaffDesk REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /employees                -- list all, newest first
  GET    /employees/search         -- filter by designation and/or department
  POST   /employees                -- create
  GET    /employees/{eid}          -- fetch one
  PATCH  /employees/{eid}          -- partial update
  DELETE /employees/{eid}          -- delete; returns a confirmation message

All routes are protected, but the check is not a router-level dependency:
each handler hands the request's AuthContext to EmployeeService, whose
first step is the authorization gate. An anonymous request therefore fails
with UNAUTHENTICATED before any validation or storage work.

eid is taken as a plain string so the service decides between
BAD_USER_INPUT (empty) and NOT_FOUND (names no record). For the same reason
POST and PATCH bodies are read raw: FastAPI body validation would run before
the gate and answer an anonymous caller with BAD_USER_INPUT.
"""

import json
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Request

from api.models import EmployeeResponse, MessageResponse
from auth.dependencies import get_auth_context
from auth.models import AuthContext
from employees.models import EmployeeInput
from employees.service import EmployeeService

router = APIRouter()

Context = Annotated[AuthContext, Depends(get_auth_context)]


def _service(request: Request) -> EmployeeService:
    return request.app.state.employee_service


async def _json_body(request: Request) -> Any:
    """Decoded JSON body; {} when empty, None when it is not JSON.

    Type and shape checks happen in EmployeeService, after the gate.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return None


# Documents the body in OpenAPI without FastAPI validating it ahead of the gate.
_BODY_DOC = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": EmployeeInput.model_json_schema()}},
    }
}


@router.get("/employees", response_model=list[EmployeeResponse])
async def list_employees(request: Request, context: Context) -> list[EmployeeResponse]:
    employees = await _service(request).list_employees(context)
    return [EmployeeResponse.from_employee(e) for e in employees]


@router.get("/employees/search", response_model=list[EmployeeResponse])
async def search_employees(
    request: Request,
    context: Context,
    designation: Optional[str] = None,
    department: Optional[str] = None,
) -> list[EmployeeResponse]:
    """Case-insensitive substring match; both filters given means either may match."""
    employees = await _service(request).search_employees(context, designation, department)
    return [EmployeeResponse.from_employee(e) for e in employees]


@router.post("/employees", response_model=EmployeeResponse, status_code=201, openapi_extra=_BODY_DOC)
async def add_employee(request: Request, context: Context) -> EmployeeResponse:
    """Create an employee. A data:image employee_photo is uploaded and replaced by its URL."""
    employee = await _service(request).add_employee(context, await _json_body(request))
    return EmployeeResponse.from_employee(employee)


@router.get("/employees/{eid}", response_model=EmployeeResponse)
async def get_employee(request: Request, context: Context, eid: str) -> EmployeeResponse:
    employee = await _service(request).get_employee(context, eid)
    return EmployeeResponse.from_employee(employee)


@router.patch("/employees/{eid}", response_model=EmployeeResponse, openapi_extra=_BODY_DOC)
async def update_employee(request: Request, context: Context, eid: str) -> EmployeeResponse:
    employee = await _service(request).update_employee(context, eid, await _json_body(request))
    return EmployeeResponse.from_employee(employee)


@router.delete("/employees/{eid}", response_model=MessageResponse)
async def delete_employee(request: Request, context: Context, eid: str) -> MessageResponse:
    message = await _service(request).delete_employee(context, eid)
    return MessageResponse(message=message)
