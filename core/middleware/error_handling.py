"""
Error handling middleware with security-compliant error sanitization.

Domain exceptions from the service layer become the standard error envelope;
anything unexpected becomes a generic 500 with details kept in the log.
"""

import logging
import traceback
from typing import Any, Callable
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
import re

from core.exceptions import WorkflowError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b(?:SCR|INT|TEST|REG)_[A-Za-z0-9_-]{16,}'),  # candidate link tokens
    re.compile(r'\b\d{16}\b'),  # Credit card
]


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the traceback (only in debug)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Field-level validation errors without echoing submitted values."""
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def error_body(code: str, message: str, path: str, method: str, details: Any = None) -> dict:
    body = {"error": {"code": code, "message": message, "path": path, "method": method}}
    if details is not None:
        body["error"]["details"] = details
    return body


def classify_exception(exc: Exception, debug: bool = False) -> tuple[int, str, str, Any]:
    """
    Map an exception onto ``(status, code, message, details)``.

    Logging is left to the caller so the request context can be attached.
    """
    if isinstance(exc, WorkflowError):
        return exc.status_code, exc.code, sanitize_error_message(exc.message), exc.details

    if isinstance(exc, StarletteHTTPException):
        return exc.status_code, "HTTP_EXCEPTION", sanitize_error_message(exc.detail), None

    if isinstance(exc, RequestValidationError):
        return status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Request validation failed", format_validation_errors(exc)

    details = get_safe_error_details(exc, include_details=True) if debug else None

    if isinstance(exc, IntegrityError):
        return status.HTTP_409_CONFLICT, "INTEGRITY_ERROR", "Database integrity constraint violated", details
    if isinstance(exc, OperationalError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "DATABASE_ERROR", "Database service temporarily unavailable", None
    if isinstance(exc, SQLAlchemyError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "A database error occurred", details
    if isinstance(exc, RedisConnectionError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "CACHE_ERROR", "Cache service temporarily unavailable", None
    if isinstance(exc, RedisError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "CACHE_ERROR", "A cache error occurred", details
    if isinstance(exc, TimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT, "TIMEOUT", "The request timed out", None
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_SERVER_ERROR", "An unexpected error occurred", details


def _log(exc: Exception, status_code: int, method: str, path: str) -> None:
    if status_code >= 500:
        logger.error(
            f"Unhandled exception: {method} {path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True,
        )
    else:
        logger.warning(
            f"{type(exc).__name__}: {method} {path} - "
            f"Status: {status_code}, Message: {sanitize_error_message(str(exc))}"
        )


class ErrorHandlingMiddleware:
    """
    Outermost ASGI safety net.

    Exceptions that escape the route-level handlers (raised from other
    middleware, for example) are still turned into the error envelope.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        status_code, code, message, details = classify_exception(exc, self.debug)
        _log(exc, status_code, request_method, request_path)

        body = error_body(code, message, request_path, request_method, details)
        headers = dict(scope.get("headers") or [])
        request_id = headers.get(b"x-request-id")
        if request_id:
            body["error"]["request_id"] = request_id.decode()
        return JSONResponse(status_code=status_code, content=body)


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    async def handle(request: Request, exc: Exception):
        status_code, code, message, details = classify_exception(exc, app.debug)
        _log(exc, status_code, request.method, request.url.path)
        return JSONResponse(
            status_code=status_code,
            content=error_body(code, message, str(request.url.path), request.method, details),
        )

    for exc_class in (
        WorkflowError,
        StarletteHTTPException,
        RequestValidationError,
        IntegrityError,
        OperationalError,
        Exception,
    ):
        app.add_exception_handler(exc_class, handle)
