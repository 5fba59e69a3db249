"""
Candidate links and outbound notifications for workflow triggers.

Every trigger sends its email through ``notify`` and stores the returned
flag on the record that caused it; a False result is picked up later by
``POST /api/notifications/resend``.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.integrations.email import EmailService, EmailTemplates
from core.utils.formatting import mask_email
from database.models import (
    Application,
    Candidate,
    DriveCandidate,
    DriveSession,
    InterviewToken,
    Job,
    JobOffer,
    RegistrationStatus,
    ScreeningToken,
)
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)

SEND_EMAIL_TASK = "workers.tasks.emails.send_email"

LINK_PATHS = {
    "screening": "/screening/{token}",
    "interview": "/interview/{token}",
    "drive_register": "/drive/register/{token}",
    "drive_test": "/drive/test/{token}",
}


def candidate_link(kind: str, token: str) -> str:
    """Absolute URL of a candidate-facing page for ``token``."""
    return settings.public_base_url.rstrip("/") + LINK_PATHS[kind].format(token=token)


def invitation_days() -> int:
    """Whole days an interview link stays valid, as told to the candidate."""
    return max(settings.interview_token_ttl_hours // 24, 1)


async def notify(email_service: Optional[EmailService], to: str, template: dict) -> bool:
    """Send a templated email. Returns False when nothing was delivered."""
    if email_service is None:
        logger.warning("No email service configured; skipped '%s'", template.get("subject"))
        return False
    sent = await email_service.send_template(to, template)
    if not sent:
        logger.warning("Notification '%s' to %s was not delivered", template.get("subject"), mask_email(to))
    return sent


async def resend_pending(session: AsyncSession) -> dict:
    """
    Re-queue notifications whose first delivery failed.

    Each record type knows how to rebuild its email; the Celery task does
    the actual delivery and the flag is set optimistically once queued.
    """
    queued = {"screening": 0, "interview": 0, "offer": 0, "drive": 0}

    def enqueue(to: str, template: dict) -> None:
        celery_app.send_task(
            SEND_EMAIL_TASK,
            args=[to, template["subject"], template["body"], template.get("html", False)],
        )

    screening_rows = await session.execute(
        select(ScreeningToken, Candidate, Job)
        .join(Candidate, Candidate.id == ScreeningToken.candidate_id)
        .join(Job, Job.id == ScreeningToken.job_id)
        .where(ScreeningToken.notification_sent.is_(False), ScreeningToken.used.is_(False))
    )
    for token_row, candidate, job in screening_rows.all():
        enqueue(
            candidate.email,
            EmailTemplates.screening_request(
                candidate.name, job.title, candidate_link("screening", token_row.token)
            ),
        )
        token_row.notification_sent = True
        queued["screening"] += 1

    interview_rows = await session.execute(
        select(InterviewToken, Application, Candidate, Job)
        .join(Application, Application.id == InterviewToken.application_id)
        .join(Candidate, Candidate.id == Application.candidate_id)
        .join(Job, Job.id == Application.job_id)
        .where(InterviewToken.notification_sent.is_(False), InterviewToken.used.is_(False))
    )
    for token_row, _application, candidate, job in interview_rows.all():
        enqueue(
            candidate.email,
            EmailTemplates.interview_invitation(
                candidate.name,
                job.title,
                candidate_link("interview", token_row.token),
                invitation_days(),
            ),
        )
        token_row.notification_sent = True
        queued["interview"] += 1

    offer_rows = await session.execute(
        select(JobOffer, Candidate)
        .join(Candidate, Candidate.id == JobOffer.candidate_id)
        .where(JobOffer.notification_sent.is_(False))
    )
    for offer, candidate in offer_rows.all():
        enqueue(
            candidate.email,
            EmailTemplates.job_offer(
                candidate.name,
                offer.title,
                offer.base_salary,
                offer.currency,
                offer.start_date.date().isoformat() if offer.start_date else "to be confirmed",
            ),
        )
        offer.notification_sent = True
        queued["offer"] += 1

    drive_rows = await session.execute(
        select(DriveCandidate, DriveSession)
        .join(DriveSession, DriveSession.id == DriveCandidate.drive_session_id)
        .where(
            DriveCandidate.notification_sent.is_(False),
            DriveCandidate.registration_status == RegistrationStatus.PENDING,
        )
    )
    for drive_candidate, drive in drive_rows.all():
        enqueue(
            drive_candidate.email,
            EmailTemplates.drive_invitation(
                drive_candidate.name,
                drive.name,
                candidate_link("drive_register", drive_candidate.registration_token),
            ),
        )
        drive_candidate.notification_sent = True
        queued["drive"] += 1

    await session.commit()
    logger.info("Re-queued notifications: %s", queued)
    return {"queued": queued, "total": sum(queued.values())}
