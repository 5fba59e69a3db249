"""
HTTP middleware for the hiring API.

Order in ``api.main``: error envelope outermost, then request logging (which
assigns the request id), then rate limiting for candidate links and webhooks.
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    sanitize_error_message,
    setup_error_handlers,
)
from core.middleware.logging import (
    RequestIdFilter,
    StructuredLoggingMiddleware,
    mask_path,
    setup_logging,
)
from core.middleware.rate_limiting import (
    RateLimitMiddleware,
    RateLimitRule,
    SlidingWindowRateLimiter,
    default_rules,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "sanitize_error_message",
    "setup_error_handlers",
    "RequestIdFilter",
    "StructuredLoggingMiddleware",
    "mask_path",
    "setup_logging",
    "RateLimitMiddleware",
    "RateLimitRule",
    "SlidingWindowRateLimiter",
    "default_rules",
]
