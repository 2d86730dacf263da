"""Domain error taxonomy and its HTTP rendering.

Services raise these; the handlers registered on the app turn each one into a
single ``{"detail", "code"}`` JSON body so every failure has the same shape.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Not authenticated"


class Unverified(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "unverified"
    default_detail = "Please verify your email first"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class ValidationFailed(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    code = "validation_failed"
    default_detail = "Validation failed"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Conflict"


class InvalidStatus(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    code = "invalid_status"
    default_detail = "Invalid status value"


class PartialCascadeFailure(AppError):
    """A cascade failed after at least one of its mutating steps ran."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "cascade_failed"
    default_detail = "Operation failed part-way and was rolled back"

    def __init__(self, cascade: str, completed_steps: list[str], detail: str | None = None) -> None:
        self.cascade = cascade
        self.completed_steps = completed_steps
        super().__init__(detail)


def error_body(exc: AppError) -> dict:
    return {"detail": exc.detail, "code": exc.code}


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(content=error_body(exc), status_code=exc.status_code)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Uniqueness violation on %s %s", request.method, request.url.path)
        conflict = Conflict("Resource already exists")
        return JSONResponse(content=error_body(conflict), status_code=conflict.status_code)
