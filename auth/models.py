"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work.

Layer rule: no imports from api/ or employees/.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass
class User:
    """A principal: one local account that can log in.

    email is stored lower-cased so uniqueness is case-insensitive.
    hashed_password is a bcrypt hash; the plaintext is never stored and the
    hash never leaves the service layer (see api/models.UserResponse).
    """

    username: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert
    updated_at: str | None = None


# ---------------------------------------------------------------------------
# Per-request authentication context
#
# A tagged result rather than "User | None": the anonymous branch is a value
# of its own, built once per request by SessionResolver and never mutated.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Anonymous:
    """No principal: header absent, malformed, or token failed verification."""

    reason: str = "missing"  # "missing" | "malformed" | "invalid_token" | "unknown_user"


@dataclass(frozen=True)
class Authenticated:
    principal: User


AuthContext = Union[Anonymous, Authenticated]
