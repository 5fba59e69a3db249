"""
Decision matrix service functions.

One decision row per application. Recording a decision is an upsert: the
trigger for the decision (offer, next round, rejection) runs only when the
stored decision actually changes, so replaying a request is harmless.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.interviews import next_round_number
from api.services.notifications import notify
from api.services.offers import build_offer, get_offer_for_application, send_offer_email
from core.exceptions import NotFound, ValidationFailed
from core.integrations.email import EmailService, EmailTemplates
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import add_days, now
from core.workflow.states import advance_application, advance_decision
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    DecisionMatrix,
    DecisionType,
    Interview,
    InterviewRound,
    InterviewStatus,
    InterviewType,
    Job,
    JobOffer,
)

logger = logging.getLogger(__name__)

NEXT_ROUND_DURATION_MINUTES = 60
NEXT_ROUND_SCHEDULE_DAYS = 7


async def get_decision(session: AsyncSession, application_id: int) -> Optional[DecisionMatrix]:
    result = await session.execute(
        select(DecisionMatrix).where(DecisionMatrix.application_id == application_id)
    )
    return result.scalar_one_or_none()


async def record_decision(
    session: AsyncSession,
    application_id: int,
    decision: DecisionType,
    next_round: Optional[str] = None,
    notes: Optional[str] = None,
    decided_by: Optional[str] = None,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Create or update the decision for an application.

    A concurrent first insert for the same application loses on the unique
    key and is retried once against the row that won.
    """
    if decision == DecisionType.PROCEED and not (next_round and next_round.strip()):
        raise ValidationFailed("next_round is required when the decision is 'proceed'")

    args = (session, application_id, decision, next_round, notes, decided_by, email_service)
    try:
        return await _record_decision(*args)
    except IntegrityError:
        await session.rollback()
        logger.info("Decision for application %s raced another request; retrying", application_id)
    return await _record_decision(*args)


async def _record_decision(
    session: AsyncSession,
    application_id: int,
    decision: DecisionType,
    next_round: Optional[str],
    notes: Optional[str],
    decided_by: Optional[str],
    email_service: Optional[EmailService],
) -> Dict[str, Any]:
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")

    row = await get_decision(session, application_id)
    if row is None:
        row = DecisionMatrix(application_id=application_id, decision=DecisionType.PENDING)
        session.add(row)

    changed = advance_decision(row, decision, next_round.strip() if next_round else None)
    if notes is not None:
        row.notes = notes
    if decided_by is not None:
        row.decided_by = decided_by

    triggered = None
    offer: Optional[JobOffer] = None
    interview: Optional[Interview] = None
    if changed:
        row.decided_at = now()
        if decision == DecisionType.HIRE:
            offer = await _create_offer(session, application, decided_by)
            triggered = "offer_created" if offer else None
        elif decision == DecisionType.PROCEED:
            interview = await _schedule_next_round(session, application, row)
            triggered = "next_round_scheduled"
        elif decision == DecisionType.REJECT:
            advance_application(application, ApplicationStatus.REJECTED)
            triggered = "application_rejected"

    await session.commit()

    if changed:
        log_audit_event(
            AuditAction.DECISION_RECORDED,
            ResourceType.DECISION,
            row.id,
            actor=decided_by,
            details={"application_id": application_id, "decision": decision.value, "triggered": triggered},
        )
    if offer is not None:
        await send_offer_email(session, offer, email_service)
    if interview is not None:
        await _send_next_round_email(session, application, row, interview, email_service)

    data = row.to_dict()
    data["triggered"] = triggered
    data["offer_id"] = offer.id if offer else None
    data["interview_id"] = interview.id if interview else None
    return data


async def _create_offer(
    session: AsyncSession, application: Application, decided_by: Optional[str]
) -> Optional[JobOffer]:
    if await get_offer_for_application(session, application.id):
        logger.info("Offer for application %s already exists; not creating another", application.id)
        return None
    job = await session.get(Job, application.job_id)
    offer = build_offer(application, job, created_by=decided_by)
    session.add(offer)
    await session.flush()
    log_audit_event(
        AuditAction.OFFER_CREATED,
        ResourceType.OFFER,
        offer.id,
        actor=decided_by,
        details={"application_id": application.id, "base_salary": offer.base_salary},
    )
    return offer


async def _schedule_next_round(
    session: AsyncSession, application: Application, row: DecisionMatrix
) -> Interview:
    """
    Find or create the named round for the job and schedule an interview in
    it one week out. Rounds are shared by all applications of a job.
    """
    name = row.next_round
    result = await session.execute(
        select(InterviewRound).where(InterviewRound.job_id == application.job_id)
    )
    interview_round = next(
        (r for r in result.scalars().all() if r.name.lower() == name.lower()),
        None,
    )
    if interview_round is None:
        interview_round = InterviewRound(
            job_id=application.job_id,
            round_number=await next_round_number(session, application.job_id),
            name=name,
            round_type=(
                InterviewType.TECHNICAL if "technical" in name.lower() else InterviewType.BEHAVIORAL
            ),
            duration_minutes=NEXT_ROUND_DURATION_MINUTES,
        )
        session.add(interview_round)
        await session.flush()

    row.next_round_number = interview_round.round_number
    interview = Interview(
        application_id=application.id,
        round_id=interview_round.id,
        interview_type=interview_round.round_type,
        status=InterviewStatus.SCHEDULED,
        scheduled_at=add_days(now(), NEXT_ROUND_SCHEDULE_DAYS),
        duration_minutes=interview_round.duration_minutes,
        questions=[],
        total_questions=0,
        responses=[],
    )
    session.add(interview)
    advance_application(application, ApplicationStatus.INTERVIEW_SCHEDULED)
    application.current_round = interview_round.round_number
    await session.flush()
    return interview


async def _send_next_round_email(
    session: AsyncSession,
    application: Application,
    row: DecisionMatrix,
    interview: Interview,
    email_service: Optional[EmailService],
) -> None:
    candidate = await session.get(Candidate, application.candidate_id)
    job = await session.get(Job, application.job_id)
    if candidate is None or job is None:
        return
    interview.notification_sent = await notify(
        email_service,
        candidate.email,
        EmailTemplates.next_round_invitation(
            candidate.name,
            job.title,
            row.next_round,
            interview.to_dict()["scheduled_at"][:10],
        ),
    )
    await session.commit()


async def get_application_decision(session: AsyncSession, application_id: int) -> Dict[str, Any]:
    row = await get_decision(session, application_id)
    if row is None:
        raise NotFound("Decision not found")
    return row.to_dict()


async def list_decisions(
    session: AsyncSession,
    decision: Optional[DecisionType] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    query = select(DecisionMatrix).order_by(DecisionMatrix.updated_at.desc(), DecisionMatrix.id.desc())
    if decision is not None:
        query = query.where(DecisionMatrix.decision == decision)
    result = await session.execute(query.limit(limit).offset(offset))
    return [row.to_dict() for row in result.scalars().all()]
