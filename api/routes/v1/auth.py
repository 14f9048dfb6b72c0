"""
api/routes/v1/auth.py -- Account endpoints.

Routes:
  POST /api/v1/auth/login   -- username or email + password; returns token + user
  POST /api/v1/auth/signup  -- create a principal; returns the public user shape

Both are public. Failures are ServiceErrors raised by AccountService and
normalized to {message, code} by the handlers in api/main.py.

Security:
  [M5] Cache-Control: no-store on login responses so tokens are not cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from api.models import LoginRequest, LoginResponse, SignupRequest, UserResponse
from auth.service import AccountService

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
async def login(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Authenticate with username or email and password; return a 7-day bearer token."""
    accounts: AccountService = request.app.state.account_service
    token, user = await accounts.login(body.username_or_email, body.password)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return LoginResponse(
        token=token,
        expires_in=request.app.state.token_codec.expire_seconds,
        user=UserResponse.from_user(user),
    )


@router.post("/auth/signup", response_model=UserResponse, status_code=201)
async def signup(request: Request, body: SignupRequest) -> UserResponse:
    accounts: AccountService = request.app.state.account_service
    user = await accounts.signup(body.username, body.email, body.password)
    return UserResponse.from_user(user)
