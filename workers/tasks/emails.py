"""Email sending tasks."""

from typing import Optional
import logging

from celery import Task

from workers.celery_app import celery_app
from core.integrations.email import EmailService

logger = logging.getLogger(__name__)


class EmailNotDelivered(Exception):
    """Raised inside the task so Celery retries a failed delivery."""


@celery_app.task(name="workers.tasks.emails.send_email", bind=True, max_retries=5)
def send_email(
    self: Task,
    to: str,
    subject: str,
    body: str,
    html: bool = False,
) -> dict:
    """Send email via configured email service.

    Args:
        to: Recipient email address
        subject: Email subject
        body: Email body
        html: Whether body is HTML

    Returns:
        Dictionary with send status
    """
    email_service = EmailService()
    if not email_service.send_email(to, subject, body, html=html):
        raise self.retry(exc=EmailNotDelivered(subject), countdown=120)
    return {"status": "sent", "subject": subject}
