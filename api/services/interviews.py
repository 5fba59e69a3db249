"""Interview service functions."""

from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.notifications import candidate_link, invitation_days, notify
from core.config import settings
from core.exceptions import Conflict, NotFound, ValidationFailed
from core.integrations.email import EmailService, EmailTemplates
from core.utils.datetime import now
from core.workflow.states import (
    APPLICATION_TRANSITIONS,
    advance_application,
    advance_interview,
    can_transition,
)
from core.workflow.tokens import issue_interview_token
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Interview,
    InterviewConfig,
    InterviewRound,
    InterviewStatus,
    InterviewType,
    Job,
)

logger = logging.getLogger(__name__)

INTERVIEW_EDITABLE_FIELDS = (
    "scheduled_at",
    "duration_minutes",
    "interviewer",
    "meeting_link",
    "notes",
    "round_id",
)


def _interview_dict(interview: Interview) -> Dict[str, Any]:
    data = interview.to_dict(exclude=("version_id",))
    data["current_question_index"] = interview.current_question_index
    return data


async def _require_application(session: AsyncSession, application_id: int) -> Application:
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")
    return application


# ==================== Interviews ===================== #
async def schedule_interview(
    session: AsyncSession,
    application_id: int,
    interview_type: InterviewType = InterviewType.BEHAVIORAL,
    scheduled_at: Optional[datetime] = None,
    duration_minutes: int = 60,
    interviewer: Optional[str] = None,
    meeting_link: Optional[str] = None,
    notes: Optional[str] = None,
    round_id: Optional[int] = None,
    questions: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Schedule an interview."""
    application = await _require_application(session, application_id)

    interview = Interview(
        application_id=application_id,
        round_id=round_id,
        interview_type=interview_type,
        status=InterviewStatus.SCHEDULED,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        interviewer=interviewer,
        meeting_link=meeting_link,
        notes=notes,
        questions=list(questions or []),
        total_questions=len(questions or []),
        responses=[],
    )
    session.add(interview)
    if can_transition(APPLICATION_TRANSITIONS, application.status, ApplicationStatus.INTERVIEW_SCHEDULED):
        advance_application(application, ApplicationStatus.INTERVIEW_SCHEDULED)
    await session.commit()

    logger.info("Scheduled %s interview %s for application %s", interview_type.value, interview.id, application_id)
    return _interview_dict(interview)


async def list_interviews(
    session: AsyncSession,
    application_id: Optional[int] = None,
    status: Optional[InterviewStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """List interviews with optional filters."""
    query = select(Interview)
    count_query = select(func.count(Interview.id))
    if application_id is not None:
        query = query.where(Interview.application_id == application_id)
        count_query = count_query.where(Interview.application_id == application_id)
    if status is not None:
        query = query.where(Interview.status == status)
        count_query = count_query.where(Interview.status == status)

    total = (await session.execute(count_query)).scalar() or 0
    result = await session.execute(
        query.order_by(Interview.created_at.desc(), Interview.id.desc()).limit(limit).offset(offset)
    )
    return {
        "interviews": [_interview_dict(i) for i in result.scalars().all()],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


async def get_interview(session: AsyncSession, interview_id: int) -> Dict[str, Any]:
    interview = await session.get(Interview, interview_id)
    if not interview:
        raise NotFound("Interview not found")
    return _interview_dict(interview)


async def update_interview(
    session: AsyncSession,
    interview_id: int,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update schedule details. A ``status`` change goes through the interview
    state machine; AI interviews complete only by answering every question.
    """
    interview = await session.get(Interview, interview_id)
    if not interview:
        raise NotFound("Interview not found")

    for field in INTERVIEW_EDITABLE_FIELDS:
        if field in changes:
            setattr(interview, field, changes[field])

    target = changes.get("status")
    if target is not None:
        target = InterviewStatus(target)
        if (
            target == InterviewStatus.COMPLETED
            and interview.interview_type == InterviewType.AI_VIDEO
            and interview.current_question_index < interview.total_questions
        ):
            raise Conflict("AI interview cannot be completed before all questions are answered")
        if advance_interview(interview, target):
            if target == InterviewStatus.IN_PROGRESS:
                interview.started_at = interview.started_at or now()
            elif target == InterviewStatus.COMPLETED:
                interview.completed_at = now()
                application = await session.get(Application, interview.application_id)
                if application and can_transition(
                    APPLICATION_TRANSITIONS, application.status, ApplicationStatus.INTERVIEW_COMPLETED
                ):
                    advance_application(application, ApplicationStatus.INTERVIEW_COMPLETED)

    await session.commit()
    return _interview_dict(interview)


async def delete_interview(session: AsyncSession, interview_id: int) -> Dict[str, Any]:
    interview = await session.get(Interview, interview_id)
    if not interview:
        raise NotFound("Interview not found")
    await session.delete(interview)
    await session.commit()
    return {"success": True, "id": interview_id}


async def send_interview_invitation(
    session: AsyncSession,
    application_id: int,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """Issue an interview token for an application and email the link."""
    application = await _require_application(session, application_id)
    candidate = await session.get(Candidate, application.candidate_id)
    job = await session.get(Job, application.job_id)

    if can_transition(APPLICATION_TRANSITIONS, application.status, ApplicationStatus.INTERVIEW_INVITED):
        advance_application(application, ApplicationStatus.INTERVIEW_INVITED)
    elif application.status not in (
        ApplicationStatus.INTERVIEW_INVITED,
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.INTERVIEW_COMPLETED,
    ):
        raise Conflict(f"Cannot invite an application in status '{application.status.value}'")

    token_row = await issue_interview_token(session, application.id)
    await session.commit()

    interview_url = candidate_link("interview", token_row.token)
    token_row.notification_sent = await notify(
        email_service,
        candidate.email,
        EmailTemplates.interview_invitation(
            candidate.name,
            job.title,
            interview_url,
            invitation_days(),
        ),
    )
    await session.commit()
    return {
        "success": True,
        "application_id": application.id,
        "status": application.status.value,
        "interview_url": interview_url,
        "expires_at": token_row.to_dict()["expires_at"],
        "notification_sent": token_row.notification_sent,
    }


# ==================== Rounds ===================== #
async def list_rounds(session: AsyncSession, job_id: Optional[int] = None) -> List[Dict[str, Any]]:
    query = select(InterviewRound).order_by(InterviewRound.job_id, InterviewRound.round_number)
    if job_id is not None:
        query = query.where(InterviewRound.job_id == job_id)
    result = await session.execute(query)
    return [r.to_dict() for r in result.scalars().all()]


async def next_round_number(session: AsyncSession, job_id: int) -> int:
    """One past the highest existing round for the job; 2 when none exist."""
    result = await session.execute(
        select(func.max(InterviewRound.round_number)).where(InterviewRound.job_id == job_id)
    )
    highest = result.scalar()
    return highest + 1 if highest else 2


async def create_round(
    session: AsyncSession,
    job_id: int,
    name: str,
    round_number: Optional[int] = None,
    round_type: InterviewType = InterviewType.BEHAVIORAL,
    duration_minutes: int = 60,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    if not await session.get(Job, job_id):
        raise NotFound("Job not found")
    interview_round = InterviewRound(
        job_id=job_id,
        round_number=round_number or await next_round_number(session, job_id),
        name=name,
        round_type=round_type,
        duration_minutes=duration_minutes,
        description=description,
    )
    session.add(interview_round)
    await session.commit()
    return interview_round.to_dict()


async def update_round(session: AsyncSession, round_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    interview_round = await session.get(InterviewRound, round_id)
    if not interview_round:
        raise NotFound("Interview round not found")
    for field in ("name", "round_number", "round_type", "duration_minutes", "description"):
        if field in changes and changes[field] is not None:
            setattr(interview_round, field, changes[field])
    await session.commit()
    return interview_round.to_dict()


async def delete_round(session: AsyncSession, round_id: int) -> Dict[str, Any]:
    interview_round = await session.get(InterviewRound, round_id)
    if not interview_round:
        raise NotFound("Interview round not found")
    await session.delete(interview_round)
    await session.commit()
    return {"success": True, "id": round_id}


# ==================== Question configuration ===================== #
async def get_config(session: AsyncSession, job_id: int) -> Dict[str, Any]:
    """Return the job's interview config, or the defaults when none is saved."""
    result = await session.execute(select(InterviewConfig).where(InterviewConfig.job_id == job_id))
    config = result.scalar_one_or_none()
    if config is None:
        if not await session.get(Job, job_id):
            raise NotFound("Job not found")
        return {
            "job_id": job_id,
            "total_questions": settings.default_interview_questions,
            "custom_questions": [],
            "technical_questions": [],
            "behavioral_questions": [],
            "situational_questions": [],
            "passing_score": 70,
        }
    return config.to_dict()


async def upsert_config(session: AsyncSession, job_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
    if not await session.get(Job, job_id):
        raise NotFound("Job not found")
    total = values.get("total_questions")
    if total is not None and not 1 <= total <= 50:
        raise ValidationFailed("total_questions must be between 1 and 50")

    result = await session.execute(select(InterviewConfig).where(InterviewConfig.job_id == job_id))
    config = result.scalar_one_or_none()
    if config is None:
        config = InterviewConfig(job_id=job_id)
        session.add(config)
    for field in (
        "total_questions",
        "custom_questions",
        "technical_questions",
        "behavioral_questions",
        "situational_questions",
        "passing_score",
    ):
        if values.get(field) is not None:
            setattr(config, field, values[field])
    await session.commit()
    return config.to_dict()
