"""
employees/store.py -- SQLAlchemy-backed persistence layer for employee records.

Uses SQLAlchemy Core (not ORM) so the dataclass in employees/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. EmployeeStore is the repository;
_row_to_employee is the mapper. Services never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL. Search
filters go through icontains(autoescape=True), so % and _ in user input are
matched literally.

Uniqueness: employees.email has a UNIQUE constraint. Writes that violate it
raise DuplicateKeyError("email") instead of the driver's IntegrityError.

Usage:
    store = EmployeeStore("sqlite:///staffdesk.db")
    employee_id = store.create_employee(employee)
    employees = store.list_employees()
    store.update_employee(employee_id, salary=5000)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, create_engine, event, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from core.errors import DuplicateKeyError
from employees.models import EDITABLE_FIELDS, Employee

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_employees = Table(
    "employees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("gender", String(10)),
    Column("designation", String(255), nullable=False),
    Column("department", String(255), nullable=False),
    Column("salary", Float, nullable=False),
    Column("date_of_joining", String(10), nullable=False),  # YYYY-MM-DD
    Column("employee_photo", String(2048)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# Newest first; id breaks ties between rows created in the same microsecond.
_NEWEST_FIRST = (_employees.c.created_at.desc(), _employees.c.id.desc())


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class EmployeeStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # SQLite requires check_same_thread=False: services run store
            # calls on worker threads via anyio.to_thread.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_employee(self, employee: Employee) -> int:
        """Insert a new employee and return its assigned database ID.

        Raises DuplicateKeyError("email") if the email is already taken.
        """
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _employees.insert().values(
                        first_name=employee.first_name,
                        last_name=employee.last_name,
                        email=employee.email,
                        gender=employee.gender,
                        designation=employee.designation,
                        department=employee.department,
                        salary=employee.salary,
                        date_of_joining=employee.date_of_joining,
                        employee_photo=employee.employee_photo,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateKeyError("email") from exc

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        """Fetch a single employee by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_employees.select().where(_employees.c.id == employee_id)).fetchone()
        return _row_to_employee(row) if row is not None else None

    def get_by_email(self, email: str) -> Optional[Employee]:
        """Look up an employee by exact (already normalized) email."""
        with self.engine.connect() as conn:
            row = conn.execute(_employees.select().where(_employees.c.email == email)).fetchone()
        return _row_to_employee(row) if row is not None else None

    def list_employees(self) -> list[Employee]:
        """Return all employees, most recently created first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_employees.select().order_by(*_NEWEST_FIRST)).fetchall()
        return [_row_to_employee(r) for r in rows]

    def search_employees(
        self, designation: Optional[str] = None, department: Optional[str] = None
    ) -> list[Employee]:
        """Case-insensitive substring match, OR-combined over the given filters.

        At least one filter must be non-empty; callers enforce that.
        """
        clauses = []
        if designation:
            clauses.append(_employees.c.designation.icontains(designation, autoescape=True))
        if department:
            clauses.append(_employees.c.department.icontains(department, autoescape=True))
        if not clauses:
            return []
        with self.engine.connect() as conn:
            rows = conn.execute(_employees.select().where(or_(*clauses)).order_by(*_NEWEST_FIRST)).fetchall()
        return [_row_to_employee(r) for r in rows]

    def update_employee(self, employee_id: int, **fields) -> bool:
        """Update a subset of editable fields and stamp updated_at.

        Returns True if a row was updated, False if employee_id was not found.
        Raises DuplicateKeyError("email") if the new email is already taken.
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown employee fields: {unknown!r}")
        values = dict(fields, updated_at=_now_iso())
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_employees.update().where(_employees.c.id == employee_id).values(**values))
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateKeyError("email") from exc
        return result.rowcount > 0

    def delete_employee(self, employee_id: int) -> Optional[Employee]:
        """Delete an employee and return the removed record, or None if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_employees.select().where(_employees.c.id == employee_id)).fetchone()
            if row is None:
                return None
            result = conn.execute(_employees.delete().where(_employees.c.id == employee_id))
            conn.commit()
        if result.rowcount == 0:
            return None
        return _row_to_employee(row)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_employee(row) -> Employee:
    return Employee(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        gender=row.gender,
        designation=row.designation,
        department=row.department,
        salary=row.salary,
        date_of_joining=row.date_of_joining,
        employee_photo=row.employee_photo,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
