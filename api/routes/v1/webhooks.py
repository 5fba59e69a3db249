"""
Inbound email webhooks.

Providers post candidate replies here. Each payload is normalized to one
shape and routed to screening; anything else is acknowledged and ignored so
the provider does not retry.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, get_email_service
from api.services import inbound_email
from core.exceptions import ValidationFailed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationFailed("Webhook payload must be a JSON object")
    return payload


@router.post("/email", summary="Generic Inbound Email")
async def receive_email(
    payload: Any = Body(..., description="{from, subject, text, html}"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    email = inbound_email.from_generic_payload(_require_object(payload))
    return await inbound_email.handle_inbound_email(db, email, email_service=email_service)


@router.post("/brevo", summary="Brevo Inbound Parse")
async def receive_brevo(
    payload: Any = Body(..., description="Brevo inbound parsing payload with items[]"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    emails = inbound_email.from_brevo_payload(_require_object(payload))
    results = []
    for email in emails:
        results.append(await inbound_email.handle_inbound_email(db, email, email_service=email_service))
    logger.info("Brevo webhook delivered %d message(s)", len(results))
    return {"status": "ok", "processed": len(results), "results": results}
