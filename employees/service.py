"""
employees/service.py -- Employee operations behind the authorization gate.

Every public method takes the request's AuthContext and calls
require_principal() before anything else, so an anonymous caller never
reaches validation, storage or the asset host.

Write order for add/update:
  gate -> identifier -> body types -> field rules -> uniqueness lookup -> photo upload -> write

Errors raised here are ServiceError subclasses; storage faults other than
unique violations propagate untouched and are normalized at the boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from anyio import to_thread

from auth.gate import require_principal
from auth.models import AuthContext
from core.errors import DuplicateKeyError, InvalidInput, Internal, NotFound
from core.validation import coerce_body, parse_date, validate_employee_patch, validate_new_employee
from employees.models import EDITABLE_FIELDS, Employee, EmployeeInput
from employees.photos import AssetHost, resolve_photo
from employees.store import EmployeeStore

logger = logging.getLogger("staffdesk.employees")

_TRIMMED_FIELDS = ("first_name", "last_name", "designation", "department")

# SQLite INTEGER is a signed 64-bit value.
_MAX_ROW_ID = 2**63 - 1


def _duplicate_email() -> InvalidInput:
    return InvalidInput("An employee with this email already exists.")


def _not_found(eid: Any) -> NotFound:
    return NotFound(f"No employee found with ID: {eid}")


def _parse_id(eid: Any) -> int:
    """Turn a caller-supplied identifier into a row id.

    Empty is a caller error; anything that cannot name a row is NotFound.
    """
    if eid is None or not str(eid).strip():
        raise InvalidInput("Employee ID is required.")
    try:
        employee_id = int(str(eid).strip())
    except ValueError:
        raise _not_found(eid) from None
    if not 1 <= employee_id <= _MAX_ROW_ID:
        raise _not_found(eid)
    return employee_id


def _normalize(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Trim text, lower-case email and render the joining date as YYYY-MM-DD."""
    out = dict(fields)
    for name in _TRIMMED_FIELDS:
        if isinstance(out.get(name), str):
            out[name] = out[name].strip()
    if isinstance(out.get("gender"), str):
        out["gender"] = out["gender"].strip() or None
    if isinstance(out.get("email"), str):
        out["email"] = out["email"].strip().lower()
    if out.get("date_of_joining") is not None:
        out["date_of_joining"] = parse_date(out["date_of_joining"]).isoformat()
    if out.get("salary") is not None:
        out["salary"] = float(out["salary"])
    return out


def _supplied(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Editable fields actually present in an update payload.

    A blank gender is treated as not sent, the same way create treats it.
    """
    return {
        k: v
        for k, v in payload.items()
        if k in EDITABLE_FIELDS and v is not None and not (k == "gender" and not str(v).strip())
    }


class EmployeeService:
    def __init__(self, store: EmployeeStore, asset_host: AssetHost) -> None:
        self._store = store
        self._assets = asset_host

    async def list_employees(self, context: AuthContext) -> list[Employee]:
        require_principal(context)
        return await to_thread.run_sync(self._store.list_employees)

    async def get_employee(self, context: AuthContext, eid: Any) -> Employee:
        require_principal(context)
        employee_id = _parse_id(eid)
        employee = await to_thread.run_sync(self._store.get_employee, employee_id)
        if employee is None:
            raise _not_found(eid)
        return employee

    async def search_employees(
        self, context: AuthContext, designation: Optional[str] = None, department: Optional[str] = None
    ) -> list[Employee]:
        require_principal(context)
        designation = (designation or "").strip() or None
        department = (department or "").strip() or None
        if designation is None and department is None:
            raise InvalidInput("Provide at least one filter: designation or department.")
        return await to_thread.run_sync(self._store.search_employees, designation, department)

    async def add_employee(self, context: AuthContext, payload: Any) -> Employee:
        principal = require_principal(context)
        body = coerce_body(EmployeeInput, payload)
        validate_new_employee(body)
        fields = _normalize({k: body.get(k) for k in EDITABLE_FIELDS})

        existing = await to_thread.run_sync(self._store.get_by_email, fields["email"])
        if existing is not None:
            raise _duplicate_email()

        fields["employee_photo"] = await resolve_photo(self._assets, fields.get("employee_photo"))

        try:
            employee_id = await to_thread.run_sync(self._store.create_employee, Employee(**fields))
        except DuplicateKeyError as exc:
            logger.warning("employees.create_race email collision")
            raise _duplicate_email() from exc

        created = await to_thread.run_sync(self._store.get_employee, employee_id)
        if created is None:
            raise Internal("Employee not found after write.")
        logger.info("employees.created id=%s by user_id=%s", created.id, principal.id)
        return created

    async def update_employee(self, context: AuthContext, eid: Any, payload: Any) -> Employee:
        """Apply the fields present in payload. Unsent and null fields are left untouched."""
        principal = require_principal(context)
        employee_id = _parse_id(eid)
        supplied = _supplied(coerce_body(EmployeeInput, payload, exclude_unset=True))
        validate_employee_patch(supplied)

        if "employee_photo" in supplied:
            supplied["employee_photo"] = await resolve_photo(self._assets, supplied["employee_photo"])
        fields = _normalize(supplied)

        try:
            updated = await to_thread.run_sync(lambda: self._store.update_employee(employee_id, **fields))
        except DuplicateKeyError as exc:
            raise _duplicate_email() from exc
        if not updated:
            raise _not_found(eid)

        employee = await to_thread.run_sync(self._store.get_employee, employee_id)
        if employee is None:
            raise _not_found(eid)
        logger.info("employees.updated id=%s fields=%s by user_id=%s", employee_id, sorted(fields), principal.id)
        return employee

    async def delete_employee(self, context: AuthContext, eid: Any) -> str:
        principal = require_principal(context)
        employee_id = _parse_id(eid)
        deleted = await to_thread.run_sync(self._store.delete_employee, employee_id)
        if deleted is None:
            raise _not_found(eid)
        logger.info("employees.deleted id=%s by user_id=%s", employee_id, principal.id)
        return f'Employee "{deleted.first_name} {deleted.last_name}" deleted successfully.'
