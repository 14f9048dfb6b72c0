"""
auth/tokens.py -- Session tokens, password hashing and credential verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the user id and a 7-day expiry.
       Nothing is persisted server-side: validity is signature + expiry only,
       so a token cannot be revoked before it expires. decode_access_token()
       returns None on any failure -- SessionResolver turns that into an
       anonymous context.

  Passwords: bcrypt directly (no passlib wrapper). The _DUMMY_HASH constant
       enables timing equalization in CredentialVerifier.verify() so response
       time does not reveal whether an identifier exists [C1].

  Configuration: TokenCodec receives the signing secret and lifetime through
       its constructor. Nothing here reads get_settings().

Layer rule: no imports from api/ or employees/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import bcrypt
from anyio import to_thread
from jose import JWTError, jwt

from core.errors import Unauthenticated

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("staffdesk.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash [C1]. Computed once at module load so the
# first login attempt is not measurably slower than subsequent ones.
_DUMMY_HASH: str = hash_password("staffdesk_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenCodec:
    """Signs and verifies session tokens with one secret and one lifetime."""

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds

    @property
    def expire_seconds(self) -> int:
        return self._expire_seconds

    def create_access_token(self, user_id: int, now: datetime | None = None) -> str:
        """Encode a signed JWT bound to user_id, expiring after the configured lifetime.

        now is injectable so tests can mint already-expired tokens.
        """
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "iat": issued,
            "exp": issued + timedelta(seconds=self._expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def decode_access_token(self, token: str) -> dict[str, Any] | None:
        """Decode and verify a JWT. Returns the payload dict or None on any failure.

        Expired, tampered, wrongly-signed and structurally broken tokens all
        return None; so does a payload without an integer user_id.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        user_id = payload.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return None
        return payload


# ---------------------------------------------------------------------------
# Credential verification (constant-time) [C1]
# ---------------------------------------------------------------------------


class CredentialVerifier:
    """Checks an identifier + password against stored principals.

    The identifier matches either username or email in a single lookup.
    Both failure branches raise Unauthenticated (same code); only the
    human-readable message differs.
    """

    def __init__(self, store: UserStore, codec: TokenCodec) -> None:
        self._store = store
        self._codec = codec

    async def verify(self, identifier: str, password: str) -> User:
        user = await to_thread.run_sync(self._store.get_by_username_or_email, identifier)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt [C1]
            await to_thread.run_sync(verify_password, password, _DUMMY_HASH)
            logger.warning("auth.login_rejected reason=unknown_identifier")
            raise Unauthenticated("Invalid credentials. User not found.")
        matched = await to_thread.run_sync(verify_password, password, user.hashed_password)
        if not matched:
            logger.warning("auth.login_rejected user_id=%s reason=bad_password", user.id)
            raise Unauthenticated("Invalid credentials. Incorrect password.")
        return user

    def issue(self, user: User) -> str:
        """Mint a session token for a verified principal."""
        return self._codec.create_access_token(user.id)
