"""FastAPI dependencies for dependency injection."""

from typing import Any, Optional
from fastapi import Header, Request

from database.engine import get_db
from core.integrations.email import EmailService

__all__ = ["get_db", "get_email_service", "get_llm_client", "get_actor"]


def get_email_service(request: Request) -> Optional[EmailService]:
    """Email service built in the app lifespan. None disables outbound mail."""
    return getattr(request.app.state, "email_service", None)


def get_llm_client(request: Request) -> Optional[Any]:
    """
    Gemini client built in the app lifespan.

    None when no API key is configured; the agents then use their
    rule-based fallbacks.
    """
    return getattr(request.app.state, "llm_client", None)


async def get_actor(
    x_actor_id: Optional[str] = Header(None, description="Recruiter performing the action"),
) -> Optional[str]:
    """Recruiter identity recorded in audit events and ``created_by`` columns."""
    return x_actor_id
