"""
Structured request logging.

Candidate links are bearer credentials: the token segment of every
candidate-facing path is replaced before a path reaches a log line, and
email addresses and phone numbers in logged payloads are masked.

The current request id lives in a context variable so that log records
emitted deep inside a service carry it too (see ``RequestIdFilter``).
"""

import json
import logging
import re
import time
import traceback
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

REDACTED = "[REDACTED]"

# Keys whose values are never logged
SECRET_KEYS = re.compile(r"password|token|api[_-]?key|secret|authorization|cookie|session", re.IGNORECASE)

PII_MASKS = (
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL]"),
    (re.compile(r"\+?\d[\d\s().-]{8,}\d"), "[PHONE]"),
)

# Route prefixes followed by a candidate token
TOKEN_ROUTES = (
    "/candidate/interview/",
    "/screening/verify/",
    "/screening/submit/",
    "/drive/register/",
    "/drive/test/",
)
_TOKEN_SEGMENT = re.compile("(" + "|".join(re.escape(r) for r in TOKEN_ROUTES) + ")[^/]+")

QUIET_PATHS = ("/health", "/ready")


def mask_path(path: str) -> str:
    """``/api/screening/verify/SCR_x`` -> ``/api/screening/verify/[TOKEN]``."""
    return _TOKEN_SEGMENT.sub(r"\1[TOKEN]", path)


def mask_text(value: str) -> str:
    for pattern, placeholder in PII_MASKS:
        value = pattern.sub(placeholder, value)
    return value


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Mask a JSON-like structure for logging.

    Values under secret-looking keys are replaced outright; strings anywhere
    else have emails and phone numbers masked. Nesting beyond ``max_depth``
    is cut off.
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"
    if isinstance(data, str):
        return mask_text(data)
    if isinstance(data, list):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if SECRET_KEYS.search(str(key)):
                masked[key] = REDACTED
            else:
                masked[key] = mask_sensitive_data(value, depth + 1, max_depth)
        return masked
    return data


def mask_headers(headers: dict) -> dict:
    """Redact credential headers; ``Authorization`` keeps its scheme."""
    masked = {}
    for name, value in headers.items():
        if not SECRET_KEYS.search(name):
            masked[name] = value
            continue
        scheme, _, credentials = value.partition(" ")
        if name.lower() == "authorization" and credentials:
            masked[name] = f"{scheme} {REDACTED}"
        else:
            masked[name] = REDACTED
    return masked


def get_client_ip(request: Request) -> str:
    """First forwarded address (or the peer), last IPv4 octet hidden."""
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip() if forwarded else (
        request.client.host if request.client else ""
    )
    octets = ip.split(".")
    if len(octets) != 4:
        return "unknown"
    return ".".join(octets[:3] + ["xxx"])


class RequestIdFilter(logging.Filter):
    """Stamps the current request id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs ``request_started`` and ``request_completed`` as JSON lines.

    An incoming ``x-request-id`` is reused, otherwise one is generated; it
    is echoed on the response. Health checks are not logged.
    """

    def __init__(self, app: ASGIApp, log_request_body: bool = False, max_body_size: int = 1024):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        reset = request_id_var.set(request_id)
        try:
            if request.url.path.startswith(QUIET_PATHS):
                response = await call_next(request)
            else:
                response = await self._logged(request, call_next, request_id)
        finally:
            request_id_var.reset(reset)
        response.headers["x-request-id"] = request_id
        return response

    async def _logged(self, request: Request, call_next: Callable, request_id: str) -> Response:
        path = mask_path(request.url.path)
        started = {
            "event": "request_started",
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "query_params": mask_sensitive_data(dict(request.query_params)),
            "client_ip": get_client_ip(request),
            "headers": mask_headers(dict(request.headers)),
        }
        if self.log_request_body and request.method in ("POST", "PUT", "PATCH"):
            body = await self._read_body(request)
            if body is not None:
                started["body"] = mask_sensitive_data(body)
        logger.info(json.dumps(started, default=str))

        began = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            completed = json.dumps({
                "event": "request_completed",
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - began) * 1000, 2),
            })
            if status_code >= 500:
                logger.error(completed)
            elif status_code >= 400:
                logger.warning(completed)
            else:
                logger.info(completed)

    async def _read_body(self, request: Request) -> Any:
        content_type = request.headers.get("content-type", "")
        if "application/json" not in content_type:
            return {"_content_type": content_type} if content_type else None
        raw = await request.body()
        if len(raw) > self.max_body_size:
            return {"_truncated": True, "_size": len(raw)}
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return {"_unparseable": True}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id
        if record.exc_info:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }
        return json.dumps(payload, default=str)


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Install a single stdout handler on the root logger."""
    level = getattr(logging, log_level.upper())
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    if json_logs:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s")
        )
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "celery.app.trace"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
