"""
Screening service functions.

Sends screening questionnaires, serves the token-gated form and turns a
candidate's reply (form or email) into the next pipeline step. Both reply
channels go through ``_record_screening``, which consumes the token with a
conditional update before anything else happens, so a reply can trigger
the interview invitation or the rejection at most once.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.notifications import candidate_link, invitation_days, notify
from core.exceptions import NotFound, TokenInvalid, ValidationFailed
from core.integrations.email import EmailService, EmailTemplates
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import isoformat, now
from core.workflow.screening import ScreeningAnswers, ScreeningResult, evaluate_screening
from core.workflow.states import advance_application
from core.workflow.tokens import (
    INVALID_SCREENING_TOKEN,
    consume_screening_token,
    issue_interview_token,
    issue_screening_token,
    refresh_token_row,
    verify_screening_token,
)
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Job,
    ScreeningToken,
)

logger = logging.getLogger(__name__)

# Application states a screening reply may still move forward
SCREENING_OPEN = frozenset({ApplicationStatus.APPLIED, ApplicationStatus.SCREENING_SENT})

SCREENING_QUESTIONS: List[Dict[str, str]] = [
    {"key": "years_of_experience", "question": "How many years of relevant experience do you have?"},
    {"key": "current_ctc_lpa", "question": "What is your current CTC (in LPA)?"},
    {"key": "expected_salary_lpa", "question": "What is your expected salary (in LPA)?"},
    {"key": "notice_period_days", "question": "What is your notice period (in days)?"},
    {"key": "willing_to_relocate", "question": "Are you willing to relocate if required?"},
    {"key": "skills", "question": "Which of the required skills have you used professionally?"},
]


async def _get_application(
    session: AsyncSession, candidate_id: int, job_id: int
) -> Optional[Application]:
    result = await session.execute(
        select(Application).where(
            Application.candidate_id == candidate_id,
            Application.job_id == job_id,
        )
    )
    return result.scalar_one_or_none()


async def send_screening_email(
    session: AsyncSession,
    candidate_id: int,
    job_id: int,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Issue a screening token and email the questionnaire link.

    The application for the candidate+job pair is created when it does not
    exist yet and moves to ``screening_sent``.
    """
    candidate = await session.get(Candidate, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    job = await session.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")

    application = await _get_application(session, candidate_id, job_id)
    if application is None:
        application = Application(
            candidate_id=candidate_id,
            job_id=job_id,
            status=ApplicationStatus.APPLIED,
            source="screening",
        )
        session.add(application)
        await session.flush()

    advance_application(application, ApplicationStatus.SCREENING_SENT)
    token_row = await issue_screening_token(
        session, candidate_id, job_id, application_id=application.id
    )
    await session.commit()

    form_url = candidate_link("screening", token_row.token)
    token_row.notification_sent = await notify(
        email_service,
        candidate.email,
        EmailTemplates.screening_request(candidate.name, job.title, form_url),
    )
    await session.commit()

    return {
        "success": True,
        "application_id": application.id,
        "status": application.status.value,
        "expires_at": isoformat(token_row.expires_at),
        "notification_sent": token_row.notification_sent,
    }


async def verify_screening(session: AsyncSession, token: str) -> Dict[str, Any]:
    """Return what the screening form needs to render. Unknown/used → 404, expired → 410."""
    token_row = await verify_screening_token(session, token, report_expiry=True)
    candidate = await session.get(Candidate, token_row.candidate_id)
    job = await session.get(Job, token_row.job_id)
    return {
        "valid": True,
        "candidate": {"name": candidate.name if candidate else None},
        "job": {
            "title": job.title if job else None,
            "department": job.department if job else None,
            "location": job.location if job else None,
        },
        "questions": SCREENING_QUESTIONS,
        "expires_at": isoformat(token_row.expires_at),
    }


async def submit_screening(
    session: AsyncSession,
    token: str,
    answers: ScreeningAnswers,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """Record a structured form submission."""
    token_row = await verify_screening_token(session, token, report_expiry=True)
    if answers.is_empty:
        raise ValidationFailed("Screening response is empty")

    outcome = await _record_screening(session, token_row, answers, "form", email_service)
    if outcome is None:
        # Lost the race against a concurrent submission.
        raise TokenInvalid(INVALID_SCREENING_TOKEN)
    result, application, triggered = outcome
    return {
        "success": True,
        "qualified": result.qualified,
        "qualification_rate": round(result.rate, 4),
        "status": application.status.value if application else None,
        "message": (
            "Thank you! You will receive an interview invitation by email shortly."
            if result.qualified and triggered
            else "Thank you for your responses. We will be in touch."
        ),
    }


async def process_screening_reply(
    session: AsyncSession,
    sender_email: str,
    body: str,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Handle a screening reply that arrived by email.

    The candidate is resolved from the sender address and the newest live
    screening token is consumed. Replays find no live token and are no-ops.
    """
    answers = ScreeningAnswers.from_text(body)
    if answers.is_empty:
        return {"status": "ignored", "reason": "empty_reply"}

    result = await session.execute(
        select(Candidate).where(Candidate.email == sender_email.lower())
    )
    candidate = result.scalar_one_or_none()
    if candidate is None:
        logger.info("Screening reply from unknown sender ignored")
        return {"status": "ignored", "reason": "unknown_sender"}

    token_result = await session.execute(
        select(ScreeningToken)
        .where(
            ScreeningToken.candidate_id == candidate.id,
            ScreeningToken.used.is_(False),
            ScreeningToken.expires_at > now(),
        )
        .order_by(ScreeningToken.created_at.desc(), ScreeningToken.id.desc())
        .limit(1)
    )
    token_row = token_result.scalar_one_or_none()
    if token_row is None:
        return {"status": "ignored", "reason": "no_pending_screening"}

    outcome = await _record_screening(session, token_row, answers, "email", email_service)
    if outcome is None:
        return {"status": "ignored", "reason": "already_processed"}
    screening_result, application, triggered = outcome
    if application is not None and not triggered:
        return {"status": "ignored", "reason": "already_screened"}
    return {
        "status": "processed",
        "candidate_id": candidate.id,
        "qualified": screening_result.qualified,
        "application_status": application.status.value if application else None,
    }


async def _record_screening(
    session: AsyncSession,
    token_row: ScreeningToken,
    answers: ScreeningAnswers,
    channel: str,
    email_service: Optional[EmailService],
) -> Optional[tuple[ScreeningResult, Optional[Application], bool]]:
    """
    Consume the token, score the answers and fire the pipeline trigger.

    The trigger only fires while the application is still in a screening
    state; the third element of the result says whether it did. Returns
    None when another request consumed the token first.
    """
    if not await consume_screening_token(session, token_row.token):
        await session.rollback()
        return None
    token_row = await refresh_token_row(session, token_row)

    application = None
    if token_row.application_id:
        application = await session.get(Application, token_row.application_id)
    if application is None:
        application = await _get_application(session, token_row.candidate_id, token_row.job_id)
    job = await session.get(Job, token_row.job_id) if application else None

    result = evaluate_screening(answers, job)
    token_row.channel = channel
    token_row.responses = answers.answers or [{"question": "Reply", "answer": answers.text}]
    token_row.result = result.to_dict()
    token_row.qualification_rate = result.rate
    token_row.qualified = result.qualified

    candidate = await session.get(Candidate, token_row.candidate_id)
    interview_token = None
    triggered = application is not None and application.status in SCREENING_OPEN
    if application is not None and not triggered:
        logger.info(
            "Screening reply for application %s stored without trigger (status=%s)",
            application.id,
            application.status.value,
        )
    if triggered:
        if application.status == ApplicationStatus.APPLIED:
            advance_application(application, ApplicationStatus.SCREENING_SENT)
        advance_application(application, ApplicationStatus.SCREENED)
        if result.qualified:
            advance_application(application, ApplicationStatus.INTERVIEW_INVITED)
            interview_token = await issue_interview_token(session, application.id)
        else:
            advance_application(application, ApplicationStatus.REJECTED)
        log_audit_event(
            AuditAction.STATUS_CHANGED,
            ResourceType.APPLICATION,
            application.id,
            details={"status": application.status.value, "channel": channel, "path": result.path},
        )
    await session.commit()

    if candidate is not None and triggered:
        position = job.title if job else "the role"
        if interview_token is not None:
            interview_token.notification_sent = await notify(
                email_service,
                candidate.email,
                EmailTemplates.interview_invitation(
                    candidate.name,
                    position,
                    candidate_link("interview", interview_token.token),
                    invitation_days(),
                ),
            )
        else:
            await notify(
                email_service,
                candidate.email,
                EmailTemplates.screening_rejection(candidate.name, position),
            )
        await session.commit()

    logger.info(
        "Screening via %s scored %.2f over %d criteria (qualified=%s)",
        channel,
        result.score,
        result.criteria_count,
        result.qualified,
    )
    return result, application, triggered
