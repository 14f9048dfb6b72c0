"""
core/errors.py -- Error taxonomy and the client-safe error normalizer.

Every failure that leaves the system is reduced to exactly {message, code}.
Services raise the ServiceError subclasses below; anything else (storage
faults, bugs) is unclassified and normalizes to INTERNAL_SERVER_ERROR with a
generic message, so no stack trace or driver detail crosses the boundary.

  Unauthenticated  UNAUTHENTICATED        401
  InvalidInput     BAD_USER_INPUT         400
  NotFound         NOT_FOUND              404
  UploadError      UPLOAD_ERROR           502
  Internal         INTERNAL_SERVER_ERROR  500

Layer rule: core/ imports only stdlib + third-party libraries.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

INTERNAL_MESSAGE = "An unexpected error occurred."


class ErrorPayload(BaseModel):
    """The only error shape clients ever see."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: str


class ServiceError(Exception):
    """Base class for classified failures. Subclasses fix code and status."""

    code: str = "INTERNAL_SERVER_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Unauthenticated(ServiceError):
    code = "UNAUTHENTICATED"
    status_code = 401


class InvalidInput(ServiceError):
    code = "BAD_USER_INPUT"
    status_code = 400


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404


class UploadError(ServiceError):
    """The asset host rejected or failed an image upload."""

    code = "UPLOAD_ERROR"
    status_code = 502


class Internal(ServiceError):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500


class DuplicateKeyError(Exception):
    """Raised by stores when a UNIQUE constraint rejects a write.

    field names the colliding column ("username" or "email") so services can
    report which value is taken.
    """

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"duplicate value for {field}")


def normalize_error(exc: BaseException) -> ErrorPayload:
    """Map any exception to the client-safe (message, code) pair."""
    if isinstance(exc, ServiceError):
        return ErrorPayload(message=exc.message, code=exc.code)
    return ErrorPayload(message=INTERNAL_MESSAGE, code=Internal.code)


def status_for(exc: BaseException) -> int:
    """HTTP status for an exception; unclassified failures are 500."""
    if isinstance(exc, ServiceError):
        return exc.status_code
    return Internal.status_code
