"""
api/main.py -- FastAPI application entry point for StaffDesk.

Exposes account and employee operations over HTTP, plus a side-channel
image upload endpoint.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware        -- adds CORS headers for allowed browser origins
  2. log_requests          -- one log line per request with latency

Lifespan handles startup (settings, stores, token codec, asset host,
services) and shutdown (dispose DB engines) symmetrically. Settings are read
only here; every collaborator receives its configuration by constructor.

Error contract: every failure leaves as {"message", "code"} via
core.errors.normalize_error(), with the HTTP status of its error class.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import HealthResponse
from api.routes.upload import router as upload_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.employees import router as employees_router
from auth.service import AccountService
from auth.session import SessionResolver
from auth.store import UserStore
from auth.tokens import CredentialVerifier, TokenCodec
from core.config import get_settings
from core.errors import ErrorPayload, ServiceError, normalize_error, status_for
from core.validation import describe_validation_error
from employees.photos import CloudinaryAssetHost, UnconfiguredAssetHost
from employees.service import EmployeeService
from employees.store import EmployeeStore

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("staffdesk.api")


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def wire_services(app: FastAPI, user_store, employee_store, codec: TokenCodec, asset_host, max_upload_bytes: int) -> None:
    """Attach stores, collaborators and services to app.state.

    Shared by the real lifespan and the test lifespan so both build the
    object graph the same way.
    """
    app.state.user_store = user_store
    app.state.employee_store = employee_store
    app.state.token_codec = codec
    app.state.asset_host = asset_host
    app.state.max_upload_bytes = max_upload_bytes
    app.state.session_resolver = SessionResolver(user_store, codec)
    app.state.account_service = AccountService(user_store, CredentialVerifier(user_store, codec))
    app.state.employee_service = EmployeeService(employee_store, asset_host)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime."""
    logger.info("StaffDesk API starting up")
    settings = get_settings()
    if settings.cloudinary_configured:
        asset_host = CloudinaryAssetHost(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        )
    else:
        asset_host = UnconfiguredAssetHost()
        logger.warning("Cloudinary credentials not set -- image uploads will fail with UPLOAD_ERROR")
    wire_services(
        app,
        user_store=UserStore(settings.database_url),
        employee_store=EmployeeStore(settings.database_url),
        codec=TokenCodec(settings.secret_key, settings.token_expire_seconds),
        asset_host=asset_host,
        max_upload_bytes=settings.max_upload_bytes,
    )
    logger.info("Stores initialized")

    yield

    app.state.user_store.close()
    app.state.employee_store.close()
    logger.info("StaffDesk API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="StaffDesk API",
    description="User accounts and employee records behind token authentication.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(employees_router, prefix="/api/v1", tags=["Employees"])
app.include_router(upload_router, prefix="/api", tags=["Upload"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorPayload so clients parse errors
# uniformly. Nothing from the exception beyond a ServiceError's own message
# reaches the body.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, payload: ErrorPayload) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return _error_response(status_for(exc), normalize_error(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query params are client input errors."""
    return _error_response(400, ErrorPayload(message=describe_validation_error(exc.errors()), code="BAD_USER_INPUT"))


_HTTP_CODES = {401: "UNAUTHENTICATED", 404: "NOT_FOUND"}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown route, wrong method)."""
    if exc.status_code >= 500:
        code = "INTERNAL_SERVER_ERROR"
    else:
        code = _HTTP_CODES.get(exc.status_code, "BAD_USER_INPUT")
    return _error_response(exc.status_code, ErrorPayload(message=str(exc.detail), code=code))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unclassified failures, including storage faults.

    The raw exception goes to the server log only; the client receives the
    generic INTERNAL_SERVER_ERROR payload.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(status_for(exc), normalize_error(exc))


# ---------------------------------------------------------------------------
# Index and health
# ---------------------------------------------------------------------------


@app.get("/", include_in_schema=False)
async def index() -> dict:
    return {
        "message": "StaffDesk API - employee management",
        "api": "/api/v1",
        "upload": "/api/upload",
        "docs": "/docs",
    }


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version. No authentication."""
    return HealthResponse(version=VERSION)
