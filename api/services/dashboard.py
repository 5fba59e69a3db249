"""
Dashboard metrics: headline counts and the application pipeline.
"""

from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Interview,
    InterviewStatus,
    Job,
    JobStatus,
)

# Match score at which an application counts as qualified
QUALIFIED_MATCH_SCORE = 70.0

# Forward path through the pipeline; rejections are reported separately
FUNNEL_STAGES = (
    ApplicationStatus.APPLIED,
    ApplicationStatus.SCREENING_SENT,
    ApplicationStatus.SCREENED,
    ApplicationStatus.INTERVIEW_INVITED,
    ApplicationStatus.INTERVIEW_SCHEDULED,
    ApplicationStatus.INTERVIEW_COMPLETED,
    ApplicationStatus.HIRED,
)


async def _count(session: AsyncSession, query) -> int:
    return (await session.execute(query)).scalar() or 0


async def get_metrics(session: AsyncSession) -> Dict[str, Any]:
    """
    Headline figures plus per-status pipeline counts.

    ``funnel`` counts, for every forward stage, the applications that are
    at that stage or past it.
    """
    rows = await session.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    pipeline = {status.value: 0 for status in ApplicationStatus}
    for status, count in rows.all():
        pipeline[status.value] = count

    funnel = {}
    for index, stage in enumerate(FUNNEL_STAGES):
        funnel[stage.value] = sum(pipeline[s.value] for s in FUNNEL_STAGES[index:])

    return {
        "total_applications": sum(pipeline.values()),
        "interviews_scheduled": await _count(
            session,
            select(func.count(Interview.id)).where(Interview.status == InterviewStatus.SCHEDULED),
        ),
        "qualified_candidates": await _count(
            session,
            select(func.count(Application.id)).where(Application.match_score >= QUALIFIED_MATCH_SCORE),
        ),
        "active_candidates": await _count(
            session, select(func.count(Candidate.id)).where(Candidate.archived.is_(False))
        ),
        "open_jobs": await _count(
            session, select(func.count(Job.id)).where(Job.status == JobStatus.ACTIVE)
        ),
        "avg_time_to_hire_days": await _avg_time_to_hire(session),
        "pipeline": pipeline,
        "funnel": funnel,
        "rejected": pipeline[ApplicationStatus.REJECTED.value],
    }


async def _avg_time_to_hire(session: AsyncSession) -> Optional[float]:
    result = await session.execute(
        select(Application.created_at, Application.updated_at).where(
            Application.status == ApplicationStatus.HIRED
        )
    )
    spans = [
        (updated - created).total_seconds() / 86400
        for created, updated in result.all()
        if created and updated
    ]
    if not spans:
        return None
    return round(sum(spans) / len(spans), 1)
