"""Onboarding task endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db
from api.schemas.workflow import OnboardingTaskCreate, OnboardingTaskUpdate
from api.services import onboarding as onboarding_service
from database.models import OnboardingTaskStatus

router = APIRouter(prefix="/onboarding-tasks", tags=["onboarding"])


@router.get("", summary="List Onboarding Tasks")
async def list_tasks(
    candidate_id: Optional[int] = Query(None, description="Filter by candidate"),
    job_offer_id: Optional[int] = Query(None, description="Filter by offer"),
    status: Optional[OnboardingTaskStatus] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
):
    return await onboarding_service.list_tasks(
        db, candidate_id=candidate_id, job_offer_id=job_offer_id, status=status
    )


@router.post("", status_code=201, summary="Create Onboarding Task")
async def create_task(body: OnboardingTaskCreate, db: AsyncSession = Depends(get_db)):
    return await onboarding_service.create_task(db, **body.model_dump())


@router.put("/{task_id}", summary="Update Onboarding Task")
async def update_task(
    body: OnboardingTaskUpdate,
    task_id: int = Path(..., description="Task ID"),
    db: AsyncSession = Depends(get_db),
):
    """Edit a task or move its status; completing it stamps completed_at."""
    return await onboarding_service.update_task(db, task_id, body.model_dump(exclude_unset=True))


@router.delete("/{task_id}", summary="Delete Onboarding Task")
async def delete_task(
    task_id: int = Path(..., description="Task ID"),
    db: AsyncSession = Depends(get_db),
):
    return await onboarding_service.delete_task(db, task_id)
