"""
Evaluation service functions.

``ensure_evaluation`` is the only writer of Evaluation rows. The unique key
on ``interview_id`` makes a second insert fail, in which case the row that
won is returned instead.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agents import registry
from core.exceptions import Conflict, NotFound
from core.security import AuditAction, ResourceType, log_audit_event
from database.models import (
    Application,
    Candidate,
    Evaluation,
    Interview,
    InterviewStatus,
    Job,
)
from lib.matching import find_skills

logger = logging.getLogger(__name__)


async def get_evaluation_for_interview(
    session: AsyncSession, interview_id: int
) -> Optional[Evaluation]:
    result = await session.execute(
        select(Evaluation).where(Evaluation.interview_id == interview_id)
    )
    return result.scalar_one_or_none()


async def ensure_evaluation(
    session: AsyncSession,
    interview: Interview,
    llm_client: Optional[Any] = None,
) -> Evaluation:
    """
    Return the interview's evaluation, creating it on first call.

    Args:
        session: Database session
        interview: A completed interview
        llm_client: Gemini client, or None for rule-based scoring

    Returns:
        The single Evaluation row for the interview
    """
    interview_id = interview.id
    existing = await get_evaluation_for_interview(session, interview_id)
    if existing:
        return existing

    if interview.status != InterviewStatus.COMPLETED:
        raise Conflict("Only completed interviews can be evaluated")

    application = await session.get(Application, interview.application_id)
    candidate = await session.get(Candidate, application.candidate_id) if application else None
    job = await session.get(Job, application.job_id) if application else None

    agent = registry.create("interview_evaluation", client=llm_client)
    scored = await agent.process({
        "responses": interview.responses or [],
        "candidate": {
            "name": candidate.name if candidate else None,
            "skills": candidate.skills if candidate else [],
            "experience_years": candidate.experience_years if candidate else None,
        },
        "job": {
            "title": job.title if job else None,
            "description": job.description if job else None,
            "requirements": job.requirements if job else None,
            "keywords": find_skills(job.criteria_text) if job else [],
        },
    })

    evaluation = Evaluation(
        interview_id=interview.id,
        application_id=interview.application_id,
        technical_score=scored["technical_score"],
        communication_score=scored["communication_score"],
        cultural_fit_score=scored["cultural_fit_score"],
        overall_score=scored["overall_score"],
        recommendation=scored["recommendation"],
        feedback=scored.get("feedback"),
        strengths=scored.get("strengths") or [],
        improvements=scored.get("improvements") or [],
        source=scored.get("source", "rules"),
    )
    session.add(evaluation)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info("Evaluation for interview %s already created by a concurrent request", interview_id)
        existing = await get_evaluation_for_interview(session, interview_id)
        if existing is None:
            raise
        await session.refresh(interview)
        return existing

    log_audit_event(
        AuditAction.EVALUATION_CREATED,
        ResourceType.EVALUATION,
        evaluation.id,
        details={
            "interview_id": interview.id,
            "overall_score": evaluation.overall_score,
            "recommendation": evaluation.recommendation.value,
            "source": evaluation.source,
        },
    )
    return evaluation


async def evaluate_interview(
    session: AsyncSession, interview_id: int, llm_client: Optional[Any] = None
) -> Dict[str, Any]:
    """Admin trigger for a completed interview's evaluation. Idempotent."""
    interview = await session.get(Interview, interview_id)
    if not interview:
        raise NotFound("Interview not found")
    evaluation = await ensure_evaluation(session, interview, llm_client)
    return evaluation.to_dict()


async def list_evaluations(
    session: AsyncSession,
    application_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    query = select(Evaluation).order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
    if application_id is not None:
        query = query.where(Evaluation.application_id == application_id)
    result = await session.execute(query.limit(limit).offset(offset))
    return [row.to_dict() for row in result.scalars().all()]


async def get_interview_evaluation(session: AsyncSession, interview_id: int) -> Dict[str, Any]:
    evaluation = await get_evaluation_for_interview(session, interview_id)
    if not evaluation:
        raise NotFound("Evaluation not found")
    return evaluation.to_dict()


async def get_evaluation(session: AsyncSession, evaluation_id: int) -> Dict[str, Any]:
    evaluation = await session.get(Evaluation, evaluation_id)
    if not evaluation:
        raise NotFound("Evaluation not found")
    return evaluation.to_dict()
