"""
Domain error taxonomy and the FastAPI handlers that render it.

Services raise these instead of HTTPException so they stay usable outside a
request. Every error carries an HTTP status and a stable machine-readable
code; the JSON body is always ``{"detail": <message>, "code": <code>}``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class AppError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class GpxParseError(ValidationError):
    status_code = 422
    code = "gpx_parse_error"
    default_message = "The GPX file could not be parsed"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class AlreadyMemberError(ConflictError):
    code = "already_member"
    default_message = "You are already a member of this group"


class AuthenticationError(AppError):
    status_code = 401
    code = "unauthorized"
    default_message = "Invalid or expired token"


class PermissionDeniedError(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You are not allowed to perform this action"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class UpstreamError(AppError):
    status_code = 502
    code = "upstream_error"
    default_message = "External service unavailable"


class InternalError(AppError):
    pass


class InviteCodeExhaustedError(InternalError):
    default_message = "Could not generate a unique invite code"


class NotificationDeliveryError(InternalError):
    default_message = "Failed to store notifications"


def is_unique_violation(exc: Any) -> bool:
    """True when a PostgREST error reports a unique constraint violation."""
    return isinstance(exc, APIError) and str(exc.code) == UNIQUE_VIOLATION


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message, "code": code})


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    fields = [".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in errors]
    message = "Missing or invalid fields: " + ", ".join(f for f in fields if f) if fields else "Invalid request"
    return _error_response(400, ValidationError.code, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
