"""
auth/session.py -- Builds the per-request AuthContext from a bearer header.

resolve() never raises for authentication problems. Every failure path
(no header, wrong scheme, bad signature, expired token, deleted user)
degrades to an Anonymous context with a reason tag. Rejection happens later,
in auth.gate.require_principal(), and only if the operation needs a principal.
"""

from __future__ import annotations

import logging

from anyio import to_thread

from auth.models import Anonymous, AuthContext, Authenticated
from auth.store import UserStore
from auth.tokens import TokenCodec

logger = logging.getLogger("staffdesk.auth")

_BEARER_PREFIX = "Bearer "


def parse_bearer(header: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, else None."""
    if not header or not header.startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    return token or None


class SessionResolver:
    def __init__(self, store: UserStore, codec: TokenCodec) -> None:
        self._store = store
        self._codec = codec

    async def resolve(self, authorization: str | None) -> AuthContext:
        if not authorization:
            return Anonymous("missing")

        token = parse_bearer(authorization)
        if token is None:
            return Anonymous("malformed")

        payload = self._codec.decode_access_token(token)
        if payload is None:
            logger.warning("auth.token_rejected reason=verification_failed")
            return Anonymous("invalid_token")

        user = await to_thread.run_sync(self._store.get_by_id, payload["user_id"])
        if user is None:
            logger.warning("auth.token_rejected user_id=%s reason=unknown_user", payload["user_id"])
            return Anonymous("unknown_user")

        return Authenticated(principal=user)
