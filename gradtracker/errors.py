"""
Application errors and their HTTP mapping.

Services raise these; routes let them propagate and the handlers installed by
``register_exception_handlers`` turn them into JSON responses:

    {"detail": "<message>", "code": "<KIND>"}

Unexpected failures (``StorageError`` and anything that is not an
``AppError``) are logged with full detail and answered with a generic
message, so internal paths and tracebacks never reach the caller.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base class for every error the API reports on purpose."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "missing or invalid token"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"

    def __init__(self, message: str = "not authorized"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id=None):
        if resource_id is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} not found with id: {resource_id}")


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class DocumentReferencedError(ConflictError):
    code = "DOCUMENT_REFERENCED"

    def __init__(self, message: str = "Document linked to programs; unlink first"):
        super().__init__(message)


class DuplicateEmailError(ConflictError):
    code = "DUPLICATE_EMAIL"

    def __init__(self, email: str):
        super().__init__(f"Email already exists: {email}")


class StorageError(AppError):
    """File-system failure while staging, moving or deleting a document."""


def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": GENERIC_MESSAGE, "code": exc.code},
        )

    headers = None
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        errors.append({"field": field, "message": err.get("msg")})
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "; ".join(parts) or "Validation failed",
            "code": ValidationError.code,
            "errors": errors,
        },
    )


def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_MESSAGE, "code": AppError.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
