"""
Domain exceptions raised by the service layer.

Each carries the HTTP status and error code the API reports for it; the
handlers in ``core.middleware.error_handling`` turn them into the standard
error envelope.
"""

from typing import Any, Optional


class WorkflowError(Exception):
    """Base class for expected, user-reportable failures."""

    status_code = 400
    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(WorkflowError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFound(WorkflowError):
    status_code = 404
    code = "NOT_FOUND"


class TokenInvalid(NotFound):
    """Unknown, used or expired token. The wording never says which."""

    code = "INVALID_TOKEN"


class TokenExpired(WorkflowError):
    """Expired screening token, reported as 410 Gone on the screening form."""

    status_code = 410
    code = "TOKEN_EXPIRED"


class Conflict(WorkflowError):
    status_code = 409
    code = "CONFLICT"


class InvalidTransition(Conflict):
    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, current: Any, target: Any):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(
            f"{entity} cannot move from '{current_value}' to '{target_value}'",
            details={"entity": entity, "from": current_value, "to": target_value},
        )
        self.entity = entity
        self.current = current
        self.target = target


class ExtractionFailed(WorkflowError):
    """Uploaded document could not be identified or yielded no text."""

    status_code = 400
    code = "EXTRACTION_FAILED"
