"""
Global exception handling for the application.
Every failure is an AppError of one closed kind; the kind alone decides the
HTTP status, and the response body is always {"message": ...}.
"""

from enum import Enum
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = "Internal server error"
MALFORMED_BODY_MESSAGE = "Malformed request body"


class FailureCode(str, Enum):
    """Machine-readable tag for a failure, finer grained than its kind."""

    # Validation
    NAME_REQUIRED = "NAME_REQUIRED"
    EMAIL_REQUIRED = "EMAIL_REQUIRED"
    EMAIL_INVALID_FORMAT = "EMAIL_INVALID_FORMAT"
    PASSWORD_REQUIRED = "PASSWORD_REQUIRED"
    PASSWORD_TOO_SHORT = "PASSWORD_TOO_SHORT"
    AGE_REQUIRED = "AGE_REQUIRED"
    AGE_NOT_INTEGER = "AGE_NOT_INTEGER"
    AGE_UNDER_MINIMUM = "AGE_UNDER_MINIMUM"
    ROLE_INVALID = "ROLE_INVALID"
    FIELDS_REQUIRED = "FIELDS_REQUIRED"
    QUERY_REQUIRED = "QUERY_REQUIRED"
    MALFORMED_BODY = "MALFORMED_BODY"

    # Authentication / authorization
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    AUTH_HEADER_MISSING = "AUTH_HEADER_MISSING"
    AUTH_HEADER_MALFORMED = "AUTH_HEADER_MALFORMED"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Store
    USER_NOT_FOUND = "USER_NOT_FOUND"
    EMAIL_IN_USE = "EMAIL_IN_USE"


class AppError(Exception):
    """Base class for all application exceptions."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None, code: Optional[FailureCode] = None):
        self.message = message or self.default_message
        self.code = code
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class BadRequestException(AppError):
    """Malformed input or a failed validation rule."""
    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedException(AppError):
    """Authentication failure error."""
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenException(AppError):
    """Authorization failure error."""
    kind = ErrorKind.FORBIDDEN
    default_message = "Insufficient permissions"


class EntityNotFoundException(AppError):
    """Resource not found error."""
    kind = ErrorKind.NOT_FOUND
    default_message = "User not found"


class ConflictException(AppError):
    """Uniqueness violation."""
    kind = ErrorKind.CONFLICT
    default_message = "Email already in use"


class InternalServerException(AppError):
    kind = ErrorKind.INTERNAL


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate a typed application failure to its HTTP response."""
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("Internal application error", path=request.url.path, code=exc.code)
        return error_response(exc.status_code, INTERNAL_ERROR_MESSAGE)
    return error_response(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON and wrongly shaped bodies are plain 400s."""
    logger.info("request_rejected", path=request.url.path, code=FailureCode.MALFORMED_BODY.value)
    return error_response(status.HTTP_400_BAD_REQUEST, MALFORMED_BODY_MESSAGE)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework-raised errors (unknown route, wrong method) in the same body shape."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return error_response(exc.status_code, INTERNAL_ERROR_MESSAGE)
    return error_response(exc.status_code, str(exc.detail))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    logger.exception("Unexpected error occurred", path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
