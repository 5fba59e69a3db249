"""
Candidate-facing AI interview loop.

Progress lives in ``Interview.responses`` alone: the current question and
the status are derived from its length on every read. Concurrent answer
submissions are serialized by the interview's version counter; the loser
gets a 409 and can reload.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from agents import registry
from api.services.evaluations import ensure_evaluation
from core.config import settings
from core.exceptions import Conflict, NotFound, TokenInvalid, ValidationFailed
from core.utils.datetime import isoformat, now
from core.workflow.states import (
    advance_application,
    advance_interview,
    derive_interview_status,
)
from core.workflow.tokens import (
    INVALID_INTERVIEW_TOKEN,
    consume_interview_token,
    verify_interview_token,
)
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Interview,
    InterviewConfig,
    InterviewStatus,
    InterviewToken,
    InterviewType,
    Job,
)

logger = logging.getLogger(__name__)

MAX_ANSWER_LENGTH = 10000


def interview_state(interview: Interview) -> Dict[str, Any]:
    """Client view of an interview, derived from its responses."""
    return {
        "interview_id": interview.id,
        "status": derive_interview_status(interview).value,
        "total_questions": interview.total_questions,
        "current_question_index": interview.current_question_index,
        "current_question": interview.current_question,
        "responses": interview.responses or [],
        "started_at": isoformat(interview.started_at),
        "completed_at": isoformat(interview.completed_at),
    }


async def _load_context(session: AsyncSession, token_row: InterviewToken):
    application = await session.get(Application, token_row.application_id)
    if application is None:
        raise TokenInvalid(INVALID_INTERVIEW_TOKEN)
    candidate = await session.get(Candidate, application.candidate_id)
    job = await session.get(Job, application.job_id)
    return application, candidate, job


async def _generate_questions(
    session: AsyncSession,
    candidate: Optional[Candidate],
    job: Optional[Job],
    llm_client: Optional[Any],
) -> list[str]:
    config = None
    if job is not None:
        result = await session.execute(
            select(InterviewConfig).where(InterviewConfig.job_id == job.id)
        )
        config = result.scalar_one_or_none()

    count = config.total_questions if config else settings.default_interview_questions
    agent = registry.create("interview_questions", client=llm_client)
    generated = await agent.process({
        "candidate": {
            "name": candidate.name if candidate else None,
            "skills": candidate.skills if candidate else [],
            "experience_years": candidate.experience_years if candidate else None,
            "summary": candidate.summary if candidate else None,
        },
        "job": {
            "title": job.title if job else "",
            "department": job.department if job else None,
            "description": job.description if job else "",
            "requirements": job.requirements if job else None,
            "experience_level": job.experience_level if job else None,
        },
        "count": count,
        "configured": config.configured_questions() if config else [],
    })
    logger.info("Generated %d interview questions (source=%s)", len(generated["questions"]), generated["source"])
    return generated["questions"]


async def _get_or_create_interview(
    session: AsyncSession,
    token_row: InterviewToken,
    llm_client: Optional[Any],
) -> Interview:
    """
    The first visit creates the interview and fixes its questions; the link
    from token to interview is set with a conditional update so two first
    visits cannot both create one.
    """
    if token_row.interview_id:
        interview = await session.get(Interview, token_row.interview_id)
        if interview is not None:
            return interview

    application, candidate, job = await _load_context(session, token_row)
    questions = await _generate_questions(session, candidate, job, llm_client)

    interview = Interview(
        application_id=application.id,
        interview_type=InterviewType.AI_VIDEO,
        status=InterviewStatus.SCHEDULED,
        scheduled_at=now(),
        questions=questions,
        total_questions=len(questions),
        responses=[],
    )
    session.add(interview)
    await session.flush()

    linked = await session.execute(
        update(InterviewToken)
        .where(InterviewToken.id == token_row.id, InterviewToken.interview_id.is_(None))
        .values(interview_id=interview.id)
        .execution_options(synchronize_session=False)
    )
    if linked.rowcount != 1:
        await session.rollback()
        await session.refresh(token_row)
        existing = await session.get(Interview, token_row.interview_id)
        if existing is None:
            raise NotFound("Interview not found")
        return existing

    await session.commit()
    await session.refresh(token_row)
    return interview


async def get_interview(
    session: AsyncSession, token: str, llm_client: Optional[Any] = None
) -> Dict[str, Any]:
    """Resume or begin an interview session for the token's application."""
    token_row = await verify_interview_token(session, token)
    interview = await _get_or_create_interview(session, token_row, llm_client)
    application, candidate, job = await _load_context(session, token_row)
    state = interview_state(interview)
    state["candidate_name"] = candidate.name if candidate else None
    state["job_title"] = job.title if job else None
    return state


async def start_interview(
    session: AsyncSession, token: str, llm_client: Optional[Any] = None
) -> Dict[str, Any]:
    token_row = await verify_interview_token(session, token)
    interview = await _get_or_create_interview(session, token_row, llm_client)

    if derive_interview_status(interview) == InterviewStatus.COMPLETED:
        raise Conflict("Interview already completed")
    if interview.status == InterviewStatus.SCHEDULED:
        advance_interview(interview, InterviewStatus.IN_PROGRESS)
        interview.started_at = now()
        await _commit_interview(session)
    return interview_state(interview)


async def submit_answer(
    session: AsyncSession,
    token: str,
    answer: str,
    duration: Optional[float] = None,
    question_index: Optional[int] = None,
    llm_client: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Append one response. The response that fills the last slot completes
    the interview and triggers its evaluation.
    """
    token_row = await verify_interview_token(session, token)
    if not token_row.interview_id:
        raise NotFound("Interview has not been started")
    interview = await session.get(Interview, token_row.interview_id)
    if interview is None:
        raise NotFound("Interview not found")

    answer = (answer or "").strip()
    if not answer:
        raise ValidationFailed("Answer must not be empty")
    if len(answer) > MAX_ANSWER_LENGTH:
        raise ValidationFailed(f"Answer exceeds {MAX_ANSWER_LENGTH} characters")

    if interview.status == InterviewStatus.CANCELLED:
        raise Conflict("Interview was cancelled")
    index = interview.current_question_index
    if index >= interview.total_questions:
        raise Conflict("All questions have already been answered")
    if question_index is not None and question_index != index:
        raise Conflict(
            "Answer is for a question that is not current",
            details={"expected_question_index": index, "received": question_index},
        )

    if interview.status == InterviewStatus.SCHEDULED:
        advance_interview(interview, InterviewStatus.IN_PROGRESS)
        interview.started_at = now()

    moment = now()
    interview.responses = [
        *(interview.responses or []),
        {
            "question_index": index,
            "question": interview.questions[index],
            "answer": answer,
            "duration": duration,
            "timestamp": moment.isoformat(),
        },
    ]

    completed = derive_interview_status(interview) == InterviewStatus.COMPLETED
    if completed:
        advance_interview(interview, InterviewStatus.COMPLETED)
        interview.completed_at = moment
        await _mark_application_completed(session, interview)

    await _commit_interview(session)

    state = interview_state(interview)
    if completed:
        evaluation = await ensure_evaluation(session, interview, llm_client)
        state["evaluation_id"] = evaluation.id
    return state


async def complete_interview(
    session: AsyncSession, token: str, llm_client: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Close the session. Requires every question answered; consumes the token,
    so the interview link stops working afterwards.
    """
    token_row = await verify_interview_token(session, token)
    if not token_row.interview_id:
        raise NotFound("Interview has not been started")
    interview = await session.get(Interview, token_row.interview_id)
    if interview is None:
        raise NotFound("Interview not found")

    answered = interview.current_question_index
    if answered < interview.total_questions:
        raise ValidationFailed(
            f"Interview is incomplete: {answered} of {interview.total_questions} questions answered",
            details={"answered": answered, "total_questions": interview.total_questions},
        )

    if not await consume_interview_token(session, token):
        await session.rollback()
        raise TokenInvalid(INVALID_INTERVIEW_TOKEN)

    if interview.status != InterviewStatus.COMPLETED:
        advance_interview(interview, InterviewStatus.COMPLETED)
        interview.completed_at = interview.completed_at or now()
        await _mark_application_completed(session, interview)
    await _commit_interview(session)

    evaluation = await ensure_evaluation(session, interview, llm_client)
    return {
        "success": True,
        "interview_id": interview.id,
        "status": InterviewStatus.COMPLETED.value,
        "evaluation_id": evaluation.id,
        "message": "Thank you for completing the interview. We will be in touch soon.",
    }


async def _mark_application_completed(session: AsyncSession, interview: Interview) -> None:
    application = await session.get(Application, interview.application_id)
    if application is not None and application.status in (
        ApplicationStatus.INTERVIEW_INVITED,
        ApplicationStatus.INTERVIEW_SCHEDULED,
    ):
        advance_application(application, ApplicationStatus.INTERVIEW_COMPLETED)


async def _commit_interview(session: AsyncSession) -> None:
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        raise Conflict("Interview was updated by another request; reload and retry") from exc
