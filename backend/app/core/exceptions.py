"""
Forum error taxonomy and FastAPI exception handlers.

Services raise these; handlers in this module render them as
``{"error": ...}`` or ``{"errors": [{"field", "message"}]}`` bodies.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings


class ForumError(Exception):
    """Base exception for all forum application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a response body."""
        if self.errors:
            return {"errors": self.errors}
        return {"error": self.message}


class ValidationError(ForumError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class UnauthenticatedError(ForumError):
    """Missing, invalid, or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ForumError):
    """Authenticated, but the authorization policy denies the action."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ForumError):
    """Resource is absent or soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ForumError):
    """Uniqueness violation (reported as 400, like other duplicate errors)."""

    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(ForumError):
    """Database failure; detail is logged, never returned in production."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_dict(self) -> dict[str, Any]:
        if get_settings().debug:
            return {"error": "Storage error", "message": self.message}
        return {"error": "Internal server error"}


# ==================== Handlers ====================


async def forum_error_handler(request: Request, exc: ForumError) -> ORJSONResponse:
    if isinstance(exc, StorageError):
        logger.error(f"{request.method} {request.url.path} storage failure: {exc.message}")
    return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            {
                "field": ".".join(location) or "body",
                "message": error.get("msg", "Invalid value"),
            }
        )
    return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": errors})


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> ORJSONResponse:
    return await forum_error_handler(request, StorageError(str(exc)))


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return ORJSONResponse(status_code=404, content={"error": "Route not found"})
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if get_settings().debug else "Internal server error"
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Something went wrong!", "message": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach forum error rendering to the application."""
    app.add_exception_handler(ForumError, forum_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
