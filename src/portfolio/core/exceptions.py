"""Centralized exception hierarchy and handlers for the application.

This module maps every application error to an HTTP status code and a
uniform response body. Services and routes raise exceptions from this
hierarchy rather than generic exceptions or HTTPException directly.

Exception Hierarchy:
    AppException (base)
    ├── ValidationError (400)
    ├── AuthenticationError (401)
    ├── NotFoundError (404)
    ├── ConflictError (409)
    └── StorageError (500)

Usage in Services:
    from portfolio.core.exceptions import NotFoundError

    async def record(db: AsyncSession, code: str) -> None:
        instrument = await db.get(Instrument, code)
        if instrument is None:
            raise NotFoundError(f"Instrument '{code}' not found")

Database errors that escape a route are converted to StorageError by
``storage_exception_handler`` so that driver messages never reach the client.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base exception class for all application errors.

    Attributes:
        status_code: HTTP status code for this error type
        detail: User-facing error message
        error_code: Machine-readable error code (optional)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    error_code: str | None = None

    def __init__(
        self,
        detail: str | None = None,
        *,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            detail: Custom error message (overrides class default)
            error_code: Machine-readable error identifier
        """
        self.detail = detail or self.__class__.detail
        self.error_code = error_code or self.__class__.error_code
        super().__init__(self.detail)


class ValidationError(AppException):
    """
    Raised when input validation fails.

    Used for malformed fields, unknown transaction types and non-positive
    quantities or prices. Maps to HTTP 400 Bad Request.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Validation error"
    error_code = "VALIDATION_ERROR"


class AuthenticationError(AppException):
    """
    Raised when authentication fails.

    Used for wrong credentials, invalid or expired session tokens, or a
    missing session. Maps to HTTP 401 Unauthorized.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication failed"
    error_code = "AUTHENTICATION_ERROR"


class NotFoundError(AppException):
    """
    Raised when a referenced instrument, account, transaction or price row
    does not exist for the given key. Maps to HTTP 404 Not Found.
    """

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"
    error_code = "NOT_FOUND"


class ConflictError(AppException):
    """
    Raised on a duplicate unique key at creation time.

    Maps to HTTP 409 Conflict.
    """

    status_code = status.HTTP_409_CONFLICT
    detail = "Resource conflict"
    error_code = "CONFLICT"


class StorageError(AppException):
    """
    Raised when the database is unavailable or rejects a statement in a way
    not otherwise classified. Maps to HTTP 500 with a generic message.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Storage error"
    error_code = "STORAGE_ERROR"


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """
    Handle application exceptions and convert to HTTP responses.

    Args:
        request: FastAPI request object
        exc: The exception instance

    Returns:
        JSONResponse with error details and HTTP status code

    Response Format:
        {
            "detail": "User-facing error message",
            "error_code": "MACHINE_READABLE_CODE"  # optional
        }
    """
    if exc.status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__}: {exc.detail}",
            exc_info=True,
            extra={
                "status_code": exc.status_code,
                "error_code": exc.error_code,
                "request_path": request.url.path,
            },
        )
    else:
        logger.warning(
            f"{exc.__class__.__name__}: {exc.detail}",
            extra={
                "status_code": exc.status_code,
                "error_code": exc.error_code,
                "request_path": request.url.path,
            },
        )

    response_body: dict[str, Any] = {"detail": exc.detail}
    if exc.error_code:
        response_body["error_code"] = exc.error_code

    return JSONResponse(
        status_code=exc.status_code,
        content=response_body,
    )


async def storage_exception_handler(
    request: Request,
    exc: SQLAlchemyError,
) -> JSONResponse:
    """
    Convert unhandled database errors into a generic StorageError response.

    The driver message is logged with the request path and never returned
    to the client.

    Args:
        request: FastAPI request object
        exc: The SQLAlchemy exception

    Returns:
        JSONResponse with status 500 and error_code STORAGE_ERROR
    """
    logger.error(
        f"Unhandled database error on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    return await app_exception_handler(request, StorageError())
