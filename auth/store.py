"""
auth/store.py -- SQLAlchemy Core persistence layer for principals.

Pattern: Repository + Data Mapper (same as employees/store.py).
UserStore is the repository; _row_to_user is the mapper.
Service and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  username and email each carry a UNIQUE constraint. AccountService still
  looks for a collision before inserting (that lookup produces the friendly
  message), but the constraint is what actually closes the check-then-write
  race: a concurrent duplicate that passes the lookup fails at insert with
  IntegrityError, which create_user() translates to DuplicateKeyError.
  Emails are stored lower-cased so the constraint is case-insensitive.

All methods are synchronous; services call them through
anyio.to_thread.run_sync so the event loop never blocks on the database.

Layer rule: no imports from api/ or employees/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.errors import DuplicateKeyError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),  # lower-cased
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///staffdesk.db")
        store.create_user(User(username="alice", email="a@x.com", hashed_password=hash_password("secret1")))
        user = store.get_by_username_or_email("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateKeyError("username" | "email") if either UNIQUE
        constraint rejects the row.
        """
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        email=normalize_email(user.email),
                        hashed_password=user.hashed_password,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            existing = self.find_conflict(user.username, user.email)
            if existing is not None and existing.username == user.username:
                raise DuplicateKeyError("username") from exc
            raise DuplicateKeyError("email") from exc

    def get_by_id(self, user_id: int) -> User | None:
        """Fetch a single user by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username_or_email(self, identifier: str) -> User | None:
        """Single lookup matching username (exact) OR email (case-insensitive)."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where(
                    or_(_users.c.username == identifier, _users.c.email == normalize_email(identifier))
                )
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_conflict(self, username: str, email: str) -> User | None:
        """Return any user already holding this username or email, else None.

        One combined query; when two different users collide (one on each
        field) the username holder is preferred so the reported field is stable.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                _users.select().where(or_(_users.c.username == username, _users.c.email == normalize_email(email)))
            ).fetchall()
        if not rows:
            return None
        users = [_row_to_user(r) for r in rows]
        for candidate in users:
            if candidate.username == username:
                return candidate
        return users[0]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
