"""
Inbound email normalization.

Providers post different payload shapes; each is mapped onto
``InboundEmail`` before the screening logic sees it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from api.services.screening import process_screening_reply
from core.exceptions import ValidationFailed
from core.integrations.email import EmailService
from core.utils.formatting import strip_html
from core.utils.validators import extract_email_address

logger = logging.getLogger(__name__)

SCREENING_SUBJECT_KEYWORDS = ("screening", "application", "interview", "position", "questions")


@dataclass
class InboundEmail:
    sender: str
    subject: str
    text: str
    html: Optional[str] = None

    @property
    def body(self) -> str:
        """Plain-text body, falling back to the stripped HTML part."""
        if self.text and self.text.strip():
            return self.text
        return strip_html(self.html or "")


def _address(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("Address") or value.get("address") or value.get("email")
    if isinstance(value, list) and value:
        return _address(value[0])
    if not isinstance(value, str):
        return None
    return extract_email_address(value)


def from_generic_payload(payload: Dict[str, Any]) -> InboundEmail:
    """``{from, subject, text, html}`` as sent by most inbound-parse webhooks."""
    sender = _address(payload.get("from") or payload.get("sender"))
    if not sender:
        raise ValidationFailed("Inbound email has no sender address")
    return InboundEmail(
        sender=sender,
        subject=payload.get("subject") or "",
        text=payload.get("text") or "",
        html=payload.get("html"),
    )


def from_brevo_payload(payload: Dict[str, Any]) -> List[InboundEmail]:
    """Brevo inbound parsing posts ``{"items": [...]}`` with capitalized keys."""
    items = payload.get("items")
    if items is None:
        items = [payload]
    if not isinstance(items, list):
        raise ValidationFailed("Brevo payload 'items' must be a list")

    emails = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationFailed("Brevo payload item must be an object")
        sender = _address(item.get("From")) or _address(item.get("Sender"))
        if not sender:
            raise ValidationFailed("Inbound email has no sender address")
        emails.append(
            InboundEmail(
                sender=sender,
                subject=item.get("Subject") or "",
                text=item.get("RawTextBody") or item.get("ExtractedMarkdownMessage") or "",
                html=item.get("RawHtmlBody"),
            )
        )
    return emails


def is_screening_reply(email: InboundEmail) -> bool:
    subject = email.subject.lower()
    return any(keyword in subject for keyword in SCREENING_SUBJECT_KEYWORDS)


async def handle_inbound_email(
    session: AsyncSession,
    email: InboundEmail,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """Route one normalized email. Anything that is not a screening reply is acknowledged and ignored."""
    if not is_screening_reply(email):
        logger.info("Inbound email ignored: subject is not a screening reply")
        return {"status": "ignored", "reason": "not_screening_reply"}
    return await process_screening_reply(session, email.sender, email.body, email_service)
