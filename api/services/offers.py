"""
Job offer service functions.

An offer is created at most once per application (unique key) and moves
through its states with a conditional update on the old status, so the
acceptance trigger (onboarding batch, application hired) runs once even
when the same update is sent twice.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.notifications import notify
from api.services.onboarding import create_default_tasks
from core.exceptions import Conflict, NotFound
from core.integrations.email import EmailService, EmailTemplates
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import add_days, now
from core.workflow.states import (
    APPLICATION_TRANSITIONS,
    OFFER_TRANSITIONS,
    advance_application,
    can_transition,
    check_transition,
)
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Job,
    JobOffer,
    OfferStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_SALARY = 60000
DEFAULT_OFFER_CURRENCY = "USD"
OFFER_START_DAYS = 30
OFFER_VALID_DAYS = 14
EDITABLE_WHILE_PENDING = ("title", "department", "base_salary", "start_date", "expires_at", "notes")


async def get_offer_for_application(session: AsyncSession, application_id: int) -> Optional[JobOffer]:
    result = await session.execute(
        select(JobOffer).where(JobOffer.application_id == application_id)
    )
    return result.scalar_one_or_none()


def build_offer(
    application: Application,
    job: Job,
    created_by: Optional[str] = None,
    base_salary: Optional[int] = None,
    start_date: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> JobOffer:
    """A pending offer with defaults taken from the job."""
    moment = now()
    return JobOffer(
        application_id=application.id,
        candidate_id=application.candidate_id,
        job_id=job.id,
        status=OfferStatus.PENDING,
        title=job.title,
        department=job.department,
        work_type=job.work_type,
        base_salary=base_salary or job.salary_max or DEFAULT_BASE_SALARY,
        currency=DEFAULT_OFFER_CURRENCY,
        start_date=start_date or add_days(moment, OFFER_START_DAYS),
        expires_at=add_days(moment, OFFER_VALID_DAYS),
        notes=notes,
        created_by=created_by,
    )


async def send_offer_email(
    session: AsyncSession, offer: JobOffer, email_service: Optional[EmailService]
) -> bool:
    candidate = await session.get(Candidate, offer.candidate_id)
    if candidate is None:
        return False
    offer.notification_sent = await notify(
        email_service,
        candidate.email,
        EmailTemplates.job_offer(
            candidate.name,
            offer.title,
            offer.base_salary,
            offer.currency,
            offer.to_dict()["start_date"][:10] if offer.start_date else "to be confirmed",
        ),
    )
    await session.commit()
    return offer.notification_sent


async def create_offer(
    session: AsyncSession,
    application_id: int,
    base_salary: Optional[int] = None,
    start_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """Create an offer by hand. One offer per application."""
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")
    if await get_offer_for_application(session, application_id):
        raise Conflict("An offer already exists for this application")
    job = await session.get(Job, application.job_id)

    offer = build_offer(application, job, created_by, base_salary, start_date, notes)
    session.add(offer)
    await session.commit()
    log_audit_event(AuditAction.OFFER_CREATED, ResourceType.OFFER, offer.id, actor=created_by)

    await send_offer_email(session, offer, email_service)
    return offer.to_dict()


async def get_offer(session: AsyncSession, offer_id: int) -> Dict[str, Any]:
    offer = await session.get(JobOffer, offer_id)
    if not offer:
        raise NotFound("Job offer not found")
    return offer.to_dict()


async def list_offers(
    session: AsyncSession,
    status: Optional[OfferStatus] = None,
    candidate_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    query = select(JobOffer).order_by(JobOffer.created_at.desc(), JobOffer.id.desc())
    if status is not None:
        query = query.where(JobOffer.status == status)
    if candidate_id is not None:
        query = query.where(JobOffer.candidate_id == candidate_id)
    result = await session.execute(query.limit(limit).offset(offset))
    return [offer.to_dict() for offer in result.scalars().all()]


async def update_offer(
    session: AsyncSession,
    offer_id: int,
    changes: Dict[str, Any],
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Edit a pending offer or record the candidate's response.

    Moving to ``accepted`` creates the onboarding batch, marks the
    application hired and sends the welcome email. Repeating a status that
    is already set changes nothing.
    """
    offer = await session.get(JobOffer, offer_id)
    if not offer:
        raise NotFound("Job offer not found")

    edits = {k: changes[k] for k in EDITABLE_WHILE_PENDING if changes.get(k) is not None}
    if edits:
        if offer.status != OfferStatus.PENDING:
            raise Conflict("Only pending offers can be edited")
        for field, value in edits.items():
            setattr(offer, field, value)
        await session.commit()

    if changes.get("status") is None:
        return offer.to_dict()

    target = OfferStatus(changes["status"])
    current = offer.status
    if not check_transition("JobOffer", OFFER_TRANSITIONS, current, target):
        return offer.to_dict()

    moment = now()
    result = await session.execute(
        update(JobOffer)
        .where(JobOffer.id == offer_id, JobOffer.status == current)
        .values(status=target, responded_at=moment, updated_at=moment)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        await session.refresh(offer)
        if offer.status == target:
            return offer.to_dict()
        raise Conflict("Offer status was changed by another request")
    await session.refresh(offer)

    if target == OfferStatus.ACCEPTED:
        return await _on_accepted(session, offer, email_service)

    await session.commit()
    log_audit_event(
        AuditAction.STATUS_CHANGED,
        ResourceType.OFFER,
        offer.id,
        details={"from": current.value, "to": target.value},
    )
    return offer.to_dict()


async def _on_accepted(
    session: AsyncSession, offer: JobOffer, email_service: Optional[EmailService]
) -> Dict[str, Any]:
    tasks = await create_default_tasks(session, offer)
    application = await session.get(Application, offer.application_id)
    if application is not None and can_transition(
        APPLICATION_TRANSITIONS, application.status, ApplicationStatus.HIRED
    ):
        advance_application(application, ApplicationStatus.HIRED)
    await session.commit()
    log_audit_event(
        AuditAction.STATUS_CHANGED,
        ResourceType.OFFER,
        offer.id,
        details={"to": OfferStatus.ACCEPTED.value, "onboarding_tasks": len(tasks)},
    )

    candidate = await session.get(Candidate, offer.candidate_id)
    if candidate is not None:
        offer.onboarding_notification_sent = await notify(
            email_service,
            candidate.email,
            EmailTemplates.onboarding_welcome(candidate.name, offer.title, [t.title for t in tasks]),
        )
        await session.commit()

    data = offer.to_dict()
    data["onboarding_tasks"] = [t.to_dict() for t in tasks]
    return data
