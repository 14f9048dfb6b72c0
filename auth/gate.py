"""auth/gate.py -- The authorization gate every protected operation calls first."""

from __future__ import annotations

import logging

from auth.models import AuthContext, Authenticated, User
from core.errors import Unauthenticated

logger = logging.getLogger("staffdesk.auth")


def require_principal(context: AuthContext) -> User:
    """Return the context's principal or raise Unauthenticated.

    Synchronous and side-effect free apart from logging, so it can run before
    any storage or upload call has started.
    """
    if isinstance(context, Authenticated):
        return context.principal
    logger.info("auth.gate_rejected reason=%s", context.reason)
    raise Unauthenticated("Authentication required. Please login first.")
