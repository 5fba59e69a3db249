"""
Security utilities: access-token generation and audit logging.

Candidate-facing endpoints are protected only by the unguessability of
their tokens, so tokens come from ``secrets`` and are compared in constant
time when compared outside the database.
"""

import hmac
import json
import logging
import secrets
from enum import Enum
from typing import Any, Dict, Optional, Set

from core.utils.datetime import now

logger = logging.getLogger("security.audit")

TOKEN_BYTES = 32


class TokenKind(str, Enum):
    """Prefixes identify the token family in logs and support tickets."""

    SCREENING = "SCR"
    INTERVIEW = "INT"
    TEST = "TEST"
    REGISTRATION = "REG"


def generate_token(kind: TokenKind) -> str:
    """Return a new URL-safe token such as ``INT_3q2...``."""
    return f"{kind.value}_{secrets.token_urlsafe(TOKEN_BYTES)}"


def tokens_match(expected: str, provided: str) -> bool:
    return hmac.compare_digest(expected.encode(), provided.encode())


class AuditAction(str, Enum):
    """Audit log action types."""

    TOKEN_ISSUED = "TOKEN_ISSUED"
    TOKEN_CONSUMED = "TOKEN_CONSUMED"
    STATUS_CHANGED = "STATUS_CHANGED"
    DECISION_RECORDED = "DECISION_RECORDED"
    OFFER_CREATED = "OFFER_CREATED"
    ONBOARDING_CREATED = "ONBOARDING_CREATED"
    EVALUATION_CREATED = "EVALUATION_CREATED"
    CUTOFFS_CHANGED = "CUTOFFS_CHANGED"
    ARCHIVED = "ARCHIVED"
    RESTORED = "RESTORED"
    DELETE = "DELETE"


class ResourceType(str, Enum):
    """Resource types for audit logging."""

    CANDIDATE = "CANDIDATE"
    APPLICATION = "APPLICATION"
    INTERVIEW = "INTERVIEW"
    EVALUATION = "EVALUATION"
    DECISION = "DECISION"
    OFFER = "OFFER"
    ONBOARDING = "ONBOARDING"
    SCREENING = "SCREENING"
    DRIVE = "DRIVE"
    JOB = "JOB"


# PII fields that should be masked in logs
PII_FIELDS: Set[str] = {
    "email", "phone", "name", "full_name",
    "salary", "base_salary", "address", "token",
}


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    Args:
        data: Data to mask (dict, list, or primitive)
        depth: Current recursion depth (max 10)

    Returns:
        Data with PII fields masked
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if str(key).lower() in PII_FIELDS:
                if isinstance(value, str) and len(value) > 0:
                    # Partial masking: show first char and length indicator
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    elif isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]
    else:
        return data


def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[Any] = None,
    actor: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Emit a structured audit record for a workflow state change.
    """
    event = {
        "timestamp": now().isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id is not None else None,
        "actor": actor,
        "details": mask_pii(details) if details else None,
    }
    logger.info(json.dumps(event, default=str))
