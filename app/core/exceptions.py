"""
Domain error taxonomy and the FastAPI handlers that translate it to HTTP.

Services raise these exceptions; request gates raise HTTPException directly.
Both end up as JSON error bodies.
"""

import logging
import traceback
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.logging_config import log_error

logger = logging.getLogger(__name__)


class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    SERVER_ERROR = "SERVER_ERROR"


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = ErrorCode.SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Invalid data provided"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.AUTHENTICATION_ERROR
    default_message = "Authentication failed"


class InvalidTokenError(AuthenticationError):
    default_message = "Invalid token"


class TokenExpiredError(InvalidTokenError):
    default_message = "Token has expired"


class RevokedTokenError(AuthenticationError):
    code = ErrorCode.TOKEN_REVOKED
    default_message = "Refresh token has been revoked"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.AUTHORIZATION_ERROR
    default_message = "You do not have permission to perform this action"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.FORBIDDEN
    default_message = "You do not have permission to access this resource"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = ErrorCode.CONFLICT
    default_message = "Resource already exists with this unique field"


class ServerError(AppError):
    pass


def _error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log_error(logger, exc, "Server error", {"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # Storage-engine codes never leave the process
    log_error(logger, exc, "Uniqueness violation", {"path": request.url.path}, level=logging.WARNING)
    conflict = ConflictError()
    return JSONResponse(status_code=conflict.status_code, content=_error_body(conflict.code, conflict.message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(logger, exc, "Unhandled error", {"path": request.url.path, "method": request.method})
    body = _error_body(ErrorCode.SERVER_ERROR, ServerError.default_message)
    if settings.is_development:
        body["error"]["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
