"""Unit tests for auth/store.py and employees/store.py.

Covers:
- UNIQUE constraints surface as DuplicateKeyError naming the field
- email lookups are case-insensitive for principals
- employee search escapes LIKE wildcards and ORs its filters
- update/delete report missing rows instead of raising
"""

from __future__ import annotations

import pytest

from auth.models import User
from core.errors import DuplicateKeyError
from employees.models import Employee


def _user(username="alice", email="a@x.com") -> User:
    return User(username=username, email=email, hashed_password="$2b$12$hash")


def _employee(email="ada@example.com", designation="Engineer", department="Engineering") -> Employee:
    return Employee(
        first_name="Ada",
        last_name="Lovelace",
        email=email,
        designation=designation,
        department=department,
        salary=5000.0,
        date_of_joining="2024-01-01",
        gender="Female",
    )


class TestUserStore:
    def test_create_and_fetch(self, user_store):
        uid = user_store.create_user(_user(email="Alice@X.com"))
        user = user_store.get_by_id(uid)
        assert user.username == "alice"
        assert user.email == "alice@x.com"
        assert user.created_at == user.updated_at

    def test_lookup_by_username_or_email(self, user_store):
        uid = user_store.create_user(_user())
        assert user_store.get_by_username_or_email("alice").id == uid
        assert user_store.get_by_username_or_email("A@X.COM").id == uid
        assert user_store.get_by_username_or_email("Alice") is None

    def test_unique_username(self, user_store):
        user_store.create_user(_user())
        with pytest.raises(DuplicateKeyError) as info:
            user_store.create_user(_user(email="other@x.com"))
        assert info.value.field == "username"

    def test_unique_email_case_insensitive(self, user_store):
        user_store.create_user(_user())
        with pytest.raises(DuplicateKeyError) as info:
            user_store.create_user(_user(username="bob", email="A@x.com"))
        assert info.value.field == "email"

    def test_find_conflict_prefers_username(self, user_store):
        user_store.create_user(_user(username="alice", email="a@x.com"))
        user_store.create_user(_user(username="bob", email="b@x.com"))
        assert user_store.find_conflict("bob", "a@x.com").username == "bob"
        assert user_store.find_conflict("carol", "c@x.com") is None


class TestEmployeeStore:
    def test_unique_email(self, employee_store):
        employee_store.create_employee(_employee())
        with pytest.raises(DuplicateKeyError):
            employee_store.create_employee(_employee())

    def test_update_to_taken_email(self, employee_store):
        employee_store.create_employee(_employee(email="a@x.com"))
        second = employee_store.create_employee(_employee(email="b@x.com"))
        with pytest.raises(DuplicateKeyError):
            employee_store.update_employee(second, email="a@x.com")

    def test_update_missing_row(self, employee_store):
        assert employee_store.update_employee(999, salary=2000.0) is False

    def test_update_rejects_unknown_fields(self, employee_store):
        eid = employee_store.create_employee(_employee())
        with pytest.raises(ValueError):
            employee_store.update_employee(eid, id=5)

    def test_search_escapes_wildcards(self, employee_store):
        employee_store.create_employee(_employee(email="a@x.com", department="R_D"))
        employee_store.create_employee(_employee(email="b@x.com", department="RnD"))
        found = employee_store.search_employees(department="r_d")
        assert [e.department for e in found] == ["R_D"]

    def test_search_or_and_empty(self, employee_store):
        employee_store.create_employee(_employee(email="a@x.com", designation="Manager", department="Sales"))
        employee_store.create_employee(_employee(email="b@x.com", designation="Engineer", department="Ops"))
        assert len(employee_store.search_employees(designation="man", department="ops")) == 2
        assert employee_store.search_employees() == []

    def test_delete_returns_removed_record_once(self, employee_store):
        eid = employee_store.create_employee(_employee())
        removed = employee_store.delete_employee(eid)
        assert removed.first_name == "Ada"
        assert employee_store.delete_employee(eid) is None
        assert employee_store.get_employee(eid) is None
