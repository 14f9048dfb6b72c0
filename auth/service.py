"""
auth/service.py -- Account operations: signup and login.

Both are public (no authorization gate). Signup order:
  1. field-shape validation (core.validation.SIGNUP_RULES)
  2. combined username/email collision lookup
  3. insert -- the UNIQUE constraints catch a concurrent duplicate that
     passed step 2, reported the same way as a step-2 collision
"""

from __future__ import annotations

import logging

from anyio import to_thread

from auth.models import User
from auth.store import UserStore, normalize_email
from auth.tokens import CredentialVerifier, hash_password
from core.errors import DuplicateKeyError, InvalidInput, Internal
from core.validation import validate_signup

logger = logging.getLogger("staffdesk.auth")


def _duplicate(field: str) -> InvalidInput:
    return InvalidInput(f"An account with this {field} already exists.")


class AccountService:
    def __init__(self, store: UserStore, verifier: CredentialVerifier) -> None:
        self._store = store
        self._verifier = verifier

    async def signup(self, username: str | None, email: str | None, password: str | None) -> User:
        validate_signup(username, email, password)
        username = username.strip()
        email = normalize_email(email)

        existing = await to_thread.run_sync(self._store.find_conflict, username, email)
        if existing is not None:
            raise _duplicate("username" if existing.username == username else "email")

        hashed = await to_thread.run_sync(hash_password, password)
        try:
            user_id = await to_thread.run_sync(
                self._store.create_user, User(username=username, email=email, hashed_password=hashed)
            )
        except DuplicateKeyError as exc:
            logger.warning("auth.signup_race field=%s", exc.field)
            raise _duplicate(exc.field) from exc

        created = await to_thread.run_sync(self._store.get_by_id, user_id)
        if created is None:
            raise Internal("User not found after write.")
        logger.info("auth.signup user_id=%s", created.id)
        return created

    async def login(self, identifier: str | None, password: str | None) -> tuple[str, User]:
        """Verify credentials and return (token, principal)."""
        if not identifier or not password:
            raise InvalidInput("Username/email and password are required.")
        user = await self._verifier.verify(identifier.strip(), password)
        token = self._verifier.issue(user)
        logger.info("auth.login user_id=%s", user.id)
        return token, user
