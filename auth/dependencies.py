"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_auth_context() is the soft step: it always succeeds and yields either an
Authenticated or an Anonymous context. Routes that need a principal pass the
context to their service, whose first action is auth.gate.require_principal().
Rejection therefore happens inside the protected operation, never at the
transport layer.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import AuthContext
from auth.session import SessionResolver


async def get_auth_context(request: Request) -> AuthContext:
    """Resolve the Authorization header into this request's AuthContext.

    Built once per request and cached on request.state so several
    dependencies in the same request share one resolution.
    """
    cached = getattr(request.state, "auth_context", None)
    if cached is not None:
        return cached
    resolver: SessionResolver = request.app.state.session_resolver
    context = await resolver.resolve(request.headers.get("Authorization"))
    request.state.auth_context = context
    return context
