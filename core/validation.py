"""
core/validation.py -- Field-rule tables for signup and employee input.

This is the one authoritative input contract. Rules are evaluated in table
order and the first failing rule is raised as InvalidInput (fail-fast). The
storage layer's own constraints (NOT NULL, UNIQUE) are only a safety net
behind these tables.

Full validation (create) requires every required field to be present.
Partial validation (update) checks only the fields present in the payload;
absent or None fields are skipped, present fields must pass.

Uniqueness is not checked here -- it needs storage and runs in the services,
after shape validation and immediately before the write.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from core.errors import InvalidInput

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
GENDERS = ("Male", "Female", "Other")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MIN_SALARY = 1000


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _is_username(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) >= MIN_USERNAME_LENGTH


def is_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value.strip()) is not None


def _is_password(value: Any) -> bool:
    return isinstance(value, str) and len(value) >= MIN_PASSWORD_LENGTH


def _is_non_empty(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def _is_salary(value: Any) -> bool:
    # bool is an int subclass; True is not a salary.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # Infinity and NaN parse as floats but cannot be stored or compared.
    return math.isfinite(value) and value >= MIN_SALARY


def _is_gender(value: Any) -> bool:
    return value in GENDERS


def parse_date(value: Any) -> date | None:
    """Parse a calendar date from a date, datetime or ISO 8601 string.

    Returns None when the value is not a recognisable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _is_date(value: Any) -> bool:
    return parse_date(value) is not None


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldRule:
    """One row of a rule table.

    The predicate is applied to each named field. required=False rows only
    check fields that are present, even under full validation; for them a
    blank string counts as absent.
    """

    fields: tuple[str, ...]
    check: Callable[[Any], bool]
    message: str
    required: bool = True


SIGNUP_RULES: tuple[FieldRule, ...] = (
    FieldRule(("username",), _is_username, "Username must be at least 3 characters."),
    FieldRule(("email",), is_email, "Please provide a valid email address."),
    FieldRule(("password",), _is_password, "Password must be at least 6 characters."),
)

EMPLOYEE_RULES: tuple[FieldRule, ...] = (
    FieldRule(("first_name", "last_name"), _is_non_empty, "First name and last name are required."),
    FieldRule(("email",), is_email, "Please provide a valid employee email."),
    FieldRule(("designation", "department"), _is_non_empty, "Designation and department are required."),
    FieldRule(("salary",), _is_salary, "Salary must be at least 1000."),
    FieldRule(("date_of_joining",), _is_non_empty, "Date of joining is required."),
    FieldRule(("date_of_joining",), _is_date, "Date of joining must be a valid date (YYYY-MM-DD)."),
    FieldRule(("gender",), _is_gender, "Gender must be Male, Female, or Other.", required=False),
)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _is_absent(rule: FieldRule, value: Any) -> bool:
    if value is None:
        return True
    return not rule.required and isinstance(value, str) and not value.strip()


def validate(payload: Mapping[str, Any], rules: tuple[FieldRule, ...]) -> None:
    """Full validation: raise InvalidInput for the first failing rule."""
    for rule in rules:
        for name in rule.fields:
            value = payload.get(name)
            if _is_absent(rule, value):
                if rule.required:
                    raise InvalidInput(rule.message)
                continue
            if not rule.check(value):
                raise InvalidInput(rule.message)


def validate_partial(payload: Mapping[str, Any], rules: tuple[FieldRule, ...]) -> None:
    """Partial validation: only fields present (and not None) are checked."""
    for rule in rules:
        for name in rule.fields:
            value = payload.get(name)
            if _is_absent(rule, value):
                continue
            if not rule.check(value):
                raise InvalidInput(rule.message)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def describe_validation_error(errors: Sequence[Mapping[str, Any]]) -> str:
    """One client-facing sentence for the first pydantic error."""
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON."
    # Drop transport prefixes and list/byte offsets; keep field names.
    parts = [str(p) for p in first.get("loc", ()) if isinstance(p, str) and p not in ("body", "query", "path")]
    return f"Invalid value for {'.'.join(parts)}." if parts else "Request validation failed."


def coerce_body(model: type[BaseModel], payload: Any, exclude_unset: bool = False) -> dict[str, Any]:
    """Type-coerce a decoded JSON body through a loose request model.

    payload is None when the body was not JSON at all. Only types are
    checked here; the rule tables above decide everything else.
    """
    if payload is None:
        raise InvalidInput("Request body is not valid JSON.")
    if not isinstance(payload, Mapping):
        raise InvalidInput("Request body must be a JSON object.")
    try:
        parsed = model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput(describe_validation_error(exc.errors())) from None
    return parsed.model_dump(exclude_unset=exclude_unset)


def validate_signup(username: Any, email: Any, password: Any) -> None:
    validate({"username": username, "email": email, "password": password}, SIGNUP_RULES)


def validate_new_employee(payload: Mapping[str, Any]) -> None:
    validate(payload, EMPLOYEE_RULES)


def validate_employee_patch(payload: Mapping[str, Any]) -> None:
    validate_partial(payload, EMPLOYEE_RULES)
