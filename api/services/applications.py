"""
Application service functions.

One application per (candidate, job). The unique key is the guard; the
lookup before insert only exists to give a friendlier error.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agents import registry
from core.exceptions import Conflict, NotFound
from core.security import AuditAction, ResourceType, log_audit_event
from core.workflow.states import advance_application
from database.models import Application, ApplicationStatus, Candidate, Job

logger = logging.getLogger(__name__)


async def get_application(session: AsyncSession, application_id: int) -> Dict[str, Any]:
    """
    Get detailed information about an application.

    Args:
        session: Database session
        application_id: The application ID

    Returns:
        Dictionary containing application details with candidate and job summaries
    """
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")
    candidate = await session.get(Candidate, application.candidate_id)
    job = await session.get(Job, application.job_id)

    data = application.to_dict()
    data["candidate"] = {
        "id": candidate.id,
        "name": candidate.name,
        "email": candidate.email,
    } if candidate else None
    data["job"] = {
        "id": job.id,
        "title": job.title,
        "department": job.department,
    } if job else None
    return data


async def list_applications(
    session: AsyncSession,
    job_id: Optional[int] = None,
    candidate_id: Optional[int] = None,
    status: Optional[ApplicationStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """List applications with filtering."""
    query = select(Application, Candidate.name, Job.title).join(
        Candidate, Candidate.id == Application.candidate_id
    ).join(Job, Job.id == Application.job_id)
    count_query = select(func.count(Application.id))

    if job_id is not None:
        query = query.where(Application.job_id == job_id)
        count_query = count_query.where(Application.job_id == job_id)
    if candidate_id is not None:
        query = query.where(Application.candidate_id == candidate_id)
        count_query = count_query.where(Application.candidate_id == candidate_id)
    if status is not None:
        query = query.where(Application.status == status)
        count_query = count_query.where(Application.status == status)

    total = (await session.execute(count_query)).scalar() or 0
    result = await session.execute(
        query.order_by(Application.created_at.desc(), Application.id.desc()).limit(limit).offset(offset)
    )

    applications = []
    for application, candidate_name, job_title in result.all():
        data = application.to_dict()
        data["candidate_name"] = candidate_name
        data["job_title"] = job_title
        applications.append(data)

    return {
        "applications": applications,
        "total": total,
        "limit": limit,
        "offset": offset,
    }


async def create_application(
    session: AsyncSession,
    candidate_id: int,
    job_id: int,
    source: Optional[str] = "manual",
) -> Dict[str, Any]:
    if not await session.get(Candidate, candidate_id):
        raise NotFound("Candidate not found")
    if not await session.get(Job, job_id):
        raise NotFound("Job not found")

    duplicate = await session.execute(
        select(Application.id).where(
            Application.candidate_id == candidate_id,
            Application.job_id == job_id,
        )
    )
    if duplicate.scalar_one_or_none() is not None:
        raise Conflict("Candidate has already applied to this job")

    application = Application(
        candidate_id=candidate_id,
        job_id=job_id,
        status=ApplicationStatus.APPLIED,
        source=source,
    )
    session.add(application)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Candidate has already applied to this job") from exc
    return application.to_dict()


async def update_application(
    session: AsyncSession,
    application_id: int,
    status: Optional[ApplicationStatus] = None,
    current_round: Optional[int] = None,
    actor: Optional[str] = None,
) -> Dict[str, Any]:
    """Move an application through the pipeline; illegal moves are 409."""
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")

    previous = application.status
    changed = advance_application(application, status) if status is not None else False
    if current_round is not None:
        application.current_round = current_round
    await session.commit()

    if changed:
        log_audit_event(
            AuditAction.STATUS_CHANGED,
            ResourceType.APPLICATION,
            application_id,
            actor=actor,
            details={"from": previous.value, "to": application.status.value},
        )
    return application.to_dict()


async def delete_application(session: AsyncSession, application_id: int, actor: Optional[str] = None) -> Dict[str, Any]:
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")
    await session.delete(application)
    await session.commit()
    log_audit_event(AuditAction.DELETE, ResourceType.APPLICATION, application_id, actor=actor)
    return {"success": True, "id": application_id}


async def calculate_match(
    session: AsyncSession, application_id: int, llm_client: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Score the candidate's resume against the job and store the result.

    Uses the LLM when a client is configured; keyword overlap otherwise, or
    when the model call fails.
    """
    application = await session.get(Application, application_id)
    if not application:
        raise NotFound("Application not found")
    candidate = await session.get(Candidate, application.candidate_id)
    job = await session.get(Job, application.job_id)

    agent = registry.create("resume_matching", client=llm_client)
    match = await agent.process({
        "candidate": {
            "resume_text": candidate.resume_text,
            "skills": candidate.skills or [],
            "experience_years": candidate.experience_years,
            "summary": candidate.summary,
        },
        "job": {
            "title": job.title,
            "description": job.description,
            "requirements": job.requirements,
            "criteria_text": job.criteria_text,
        },
    })

    application.match_score = match["match_score"]
    application.skills_match = match["skills_match"]
    application.experience_match = match["experience_match"]
    application.match_details = match
    await session.commit()

    logger.info(
        "Match score for application %s: %.1f (%s)", application_id, match["match_score"], match["source"]
    )
    return {"application_id": application_id, **match}
