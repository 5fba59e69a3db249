"""Job service functions."""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFound, ValidationFailed
from core.security import AuditAction, ResourceType, log_audit_event
from core.workflow.screening import JobCriteria
from database.models import Application, Job, JobStatus

logger = logging.getLogger(__name__)

JOB_FIELDS = (
    "title",
    "department",
    "description",
    "requirements",
    "experience_level",
    "location",
    "work_type",
    "salary_min",
    "salary_max",
    "currency",
    "status",
)


def _check_salary_band(salary_min: Optional[int], salary_max: Optional[int]) -> None:
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationFailed(
            "salary_min cannot exceed salary_max",
            details=[{"field": "salary_min", "message": "must be <= salary_max"}],
        )


async def get_job(session: AsyncSession, job_id: int) -> Dict[str, Any]:
    """
    Get detailed information about a job.

    Includes the screening criteria the job text implies, so recruiters can
    see what a screening reply will be scored against.
    """
    job = await session.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")

    count_result = await session.execute(
        select(func.count(Application.id)).where(Application.job_id == job_id)
    )
    criteria = JobCriteria.from_job(job)
    data = job.to_dict()
    data["application_count"] = count_result.scalar() or 0
    data["screening_criteria"] = {
        "requires_salary_info": criteria.requires_salary_info,
        "salary_range_lpa": list(criteria.salary_range) if criteria.salary_range else None,
        "requires_experience": criteria.requires_experience,
        "min_experience": criteria.min_experience,
        "requires_relocation": criteria.requires_relocation,
        "requires_notice_period": criteria.requires_notice_period,
        "skills": list(criteria.skills),
    }
    return data


async def list_jobs(
    session: AsyncSession,
    status: Optional[JobStatus] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """List jobs with optional status filter and title search."""
    query = select(Job)
    count_query = select(func.count(Job.id))
    if status is not None:
        query = query.where(Job.status == status)
        count_query = count_query.where(Job.status == status)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(func.lower(Job.title).like(pattern))
        count_query = count_query.where(func.lower(Job.title).like(pattern))

    total = (await session.execute(count_query)).scalar() or 0
    result = await session.execute(
        query.order_by(Job.created_at.desc(), Job.id.desc()).limit(limit).offset(offset)
    )
    return {
        "jobs": [job.to_dict() for job in result.scalars().all()],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


async def create_job(
    session: AsyncSession, values: Dict[str, Any], created_by: Optional[str] = None
) -> Dict[str, Any]:
    _check_salary_band(values.get("salary_min"), values.get("salary_max"))
    job = Job(
        **{k: v for k, v in values.items() if k in JOB_FIELDS and v is not None},
        created_by=created_by,
    )
    session.add(job)
    await session.commit()
    log_audit_event(AuditAction.STATUS_CHANGED, ResourceType.JOB, job.id, actor=created_by, details={"created": True})
    return job.to_dict()


async def update_job(session: AsyncSession, job_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    job = await session.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")
    for field in JOB_FIELDS:
        if changes.get(field) is not None:
            setattr(job, field, changes[field])
    _check_salary_band(job.salary_min, job.salary_max)
    await session.commit()
    return job.to_dict()


async def delete_job(session: AsyncSession, job_id: int, actor: Optional[str] = None) -> Dict[str, Any]:
    """Delete a job. Applications, tokens and rounds go with it through FK cascades."""
    job = await session.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")
    await session.delete(job)
    await session.commit()
    log_audit_event(AuditAction.DELETE, ResourceType.JOB, job_id, actor=actor)
    return {"success": True, "id": job_id}
