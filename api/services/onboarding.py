"""Onboarding task service functions."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFound
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import add_days, ensure_utc, now
from core.workflow.states import advance_onboarding_task
from database.models import (
    Candidate,
    JobOffer,
    OnboardingCategory,
    OnboardingTask,
    OnboardingTaskStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskTemplate:
    key: str
    title: str
    description: str
    category: OnboardingCategory
    due: Callable[[datetime, Optional[datetime]], datetime]


def _start_or(days_from_now: int, days_after_start: int = 0):
    def due(moment: datetime, start: Optional[datetime]) -> datetime:
        if start is None:
            return add_days(moment, days_from_now)
        return add_days(ensure_utc(start), days_after_start)
    return due


DEFAULT_TASKS: tuple[TaskTemplate, ...] = (
    TaskTemplate(
        "welcome_email",
        "Send welcome email",
        "Welcome the new hire and share first-day logistics.",
        OnboardingCategory.OTHER,
        lambda moment, start: add_days(moment, 1),
    ),
    TaskTemplate(
        "employment_contract",
        "Sign employment contract",
        "Collect the signed employment contract and tax forms.",
        OnboardingCategory.DOCUMENT,
        lambda moment, start: add_days(moment, 3),
    ),
    TaskTemplate(
        "it_setup",
        "IT setup and system access",
        "Provision laptop, email account and access to required systems.",
        OnboardingCategory.SYSTEM_ACCESS,
        lambda moment, start: add_days(moment, 5),
    ),
    TaskTemplate(
        "office_tour",
        "Office tour and team introduction",
        "Walk through the office and meet the team.",
        OnboardingCategory.MEETING,
        _start_or(7),
    ),
    TaskTemplate(
        "role_training",
        "Role-specific training",
        "Complete the training plan for the new role.",
        OnboardingCategory.TRAINING,
        _start_or(10, 3),
    ),
)


async def create_default_tasks(session: AsyncSession, offer: JobOffer) -> List[OnboardingTask]:
    """
    Create the standard onboarding batch for an accepted offer.

    Returns the existing batch when one was already created; the unique
    (offer, template) key rejects a concurrent second batch.
    """
    result = await session.execute(
        select(OnboardingTask).where(
            OnboardingTask.job_offer_id == offer.id,
            OnboardingTask.template_key.is_not(None),
        )
    )
    existing = list(result.scalars().all())
    if existing:
        return existing

    moment = now()
    tasks = [
        OnboardingTask(
            candidate_id=offer.candidate_id,
            job_offer_id=offer.id,
            template_key=template.key,
            title=template.title,
            description=template.description,
            category=template.category,
            status=OnboardingTaskStatus.PENDING,
            due_date=template.due(moment, offer.start_date),
        )
        for template in DEFAULT_TASKS
    ]
    session.add_all(tasks)
    await session.flush()
    log_audit_event(
        AuditAction.ONBOARDING_CREATED,
        ResourceType.ONBOARDING,
        offer.id,
        details={"candidate_id": offer.candidate_id, "tasks": len(tasks)},
    )
    return tasks


async def list_tasks(
    session: AsyncSession,
    candidate_id: Optional[int] = None,
    job_offer_id: Optional[int] = None,
    status: Optional[OnboardingTaskStatus] = None,
) -> List[Dict[str, Any]]:
    query = select(OnboardingTask).order_by(OnboardingTask.due_date, OnboardingTask.id)
    if candidate_id is not None:
        query = query.where(OnboardingTask.candidate_id == candidate_id)
    if job_offer_id is not None:
        query = query.where(OnboardingTask.job_offer_id == job_offer_id)
    if status is not None:
        query = query.where(OnboardingTask.status == status)
    result = await session.execute(query)
    return [task.to_dict() for task in result.scalars().all()]


async def create_task(
    session: AsyncSession,
    candidate_id: int,
    title: str,
    description: Optional[str] = None,
    category: OnboardingCategory = OnboardingCategory.OTHER,
    due_date: Optional[datetime] = None,
    assigned_to: Optional[str] = None,
    job_offer_id: Optional[int] = None,
) -> Dict[str, Any]:
    if not await session.get(Candidate, candidate_id):
        raise NotFound("Candidate not found")
    if job_offer_id is not None and not await session.get(JobOffer, job_offer_id):
        raise NotFound("Job offer not found")
    task = OnboardingTask(
        candidate_id=candidate_id,
        job_offer_id=job_offer_id,
        title=title,
        description=description,
        category=category,
        status=OnboardingTaskStatus.PENDING,
        due_date=due_date,
        assigned_to=assigned_to,
    )
    session.add(task)
    await session.commit()
    return task.to_dict()


async def update_task(session: AsyncSession, task_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    task = await session.get(OnboardingTask, task_id)
    if not task:
        raise NotFound("Onboarding task not found")

    for field in ("title", "description", "category", "due_date", "assigned_to"):
        if changes.get(field) is not None:
            setattr(task, field, changes[field])

    if changes.get("status") is not None:
        if advance_onboarding_task(task, OnboardingTaskStatus(changes["status"])):
            task.completed_at = now() if task.status == OnboardingTaskStatus.COMPLETED else None

    await session.commit()
    return task.to_dict()


async def delete_task(session: AsyncSession, task_id: int) -> Dict[str, Any]:
    task = await session.get(OnboardingTask, task_id)
    if not task:
        raise NotFound("Onboarding task not found")
    await session.delete(task)
    await session.commit()
    return {"success": True, "id": task_id}
