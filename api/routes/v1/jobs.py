"""
Job posting management endpoints.

Jobs carry the requirements text that screening and resume matching read.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db
from api.schemas.jobs import JobCreate, JobUpdate
from api.services import jobs as job_service
from database.models import JobStatus

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get(
    "",
    summary="List Jobs",
    description="List job postings, newest first.",
)
async def list_jobs(
    status: Optional[JobStatus] = Query(None, description="Filter by status (draft, active, closed)"),
    search: Optional[str] = Query(None, description="Search by title or department"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve a paginated list of job postings."""
    return await job_service.list_jobs(db, status=status, search=search, limit=limit, offset=offset)


@router.post("", status_code=201, summary="Create Job")
async def create_job(
    body: JobCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await job_service.create_job(db, body.model_dump(), created_by=actor)


@router.get(
    "/{job_id}",
    summary="Get Job Details",
    description="Job posting with its derived screening criteria and application count.",
)
async def get_job(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.get_job(db, job_id)


@router.put("/{job_id}", summary="Update Job")
async def update_job(
    body: JobUpdate,
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.update_job(db, job_id, body.model_dump(exclude_unset=True))


@router.delete("/{job_id}", summary="Delete Job")
async def delete_job(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """Delete a job together with its applications and interview rounds."""
    return await job_service.delete_job(db, job_id, actor=actor)
