"""
Interview scheduling and management endpoints.

Also hosts the per-job interview rounds and the AI interview question
configuration, which are only ever edited alongside interviews.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, get_llm_client
from api.schemas.interviews import (
    InterviewConfigUpdate,
    InterviewCreate,
    InterviewUpdate,
    RoundCreate,
    RoundUpdate,
)
from api.services import evaluations as evaluation_service
from api.services import interviews as interview_service
from database.models import InterviewStatus

router = APIRouter(prefix="/interviews", tags=["interviews"])
rounds_router = APIRouter(prefix="/interview-rounds", tags=["interviews"])
config_router = APIRouter(prefix="/interview-configs", tags=["interviews"])


@router.get(
    "",
    summary="List Interviews",
    description="List interviews, optionally for one application or in one status.",
)
async def list_interviews(
    application_id: Optional[int] = Query(None, description="Filter by application"),
    status: Optional[InterviewStatus] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.list_interviews(
        db, application_id=application_id, status=status, limit=limit, offset=offset
    )


@router.post("", status_code=201, summary="Schedule Interview")
async def schedule_interview(body: InterviewCreate, db: AsyncSession = Depends(get_db)):
    """Schedule an interview; the application moves to interview_scheduled when that is a legal step."""
    return await interview_service.schedule_interview(db, **body.model_dump())


@router.get("/{interview_id}", summary="Get Interview")
async def get_interview(
    interview_id: int = Path(..., description="Interview ID"),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.get_interview(db, interview_id)


@router.put("/{interview_id}", summary="Update Interview")
async def update_interview(
    body: InterviewUpdate,
    interview_id: int = Path(..., description="Interview ID"),
    db: AsyncSession = Depends(get_db),
):
    """Reschedule or change status. Status moves follow the interview lifecycle."""
    return await interview_service.update_interview(db, interview_id, body.model_dump(exclude_unset=True))


@router.delete("/{interview_id}", summary="Delete Interview")
async def delete_interview(
    interview_id: int = Path(..., description="Interview ID"),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.delete_interview(db, interview_id)


@router.post(
    "/{interview_id}/evaluate",
    summary="Evaluate Interview",
    description="Create the evaluation for a completed interview. Calling it again returns the same evaluation.",
)
async def evaluate_interview(
    interview_id: int = Path(..., description="Interview ID"),
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    return await evaluation_service.evaluate_interview(db, interview_id, llm_client=llm_client)


# ==================== Rounds ===================== #
@rounds_router.get("", summary="List Interview Rounds")
async def list_rounds(
    job_id: Optional[int] = Query(None, description="Filter by job"),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.list_rounds(db, job_id=job_id)


@rounds_router.post("", status_code=201, summary="Create Interview Round")
async def create_round(body: RoundCreate, db: AsyncSession = Depends(get_db)):
    return await interview_service.create_round(db, **body.model_dump())


@rounds_router.put("/{round_id}", summary="Update Interview Round")
async def update_round(
    body: RoundUpdate,
    round_id: int = Path(..., description="Round ID"),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.update_round(db, round_id, body.model_dump(exclude_unset=True))


@rounds_router.delete("/{round_id}", summary="Delete Interview Round")
async def delete_round(
    round_id: int = Path(..., description="Round ID"),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.delete_round(db, round_id)


# ==================== Question configuration ===================== #
@config_router.get("/{job_id}", summary="Get Interview Config")
async def get_config(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    """The job's AI interview question setup, or the defaults."""
    return await interview_service.get_config(db, job_id)


@config_router.put("/{job_id}", summary="Save Interview Config")
async def upsert_config(
    body: InterviewConfigUpdate,
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.upsert_config(db, job_id, body.model_dump(exclude_unset=True))
