"""AI interview evaluation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db
from api.services import evaluations as evaluation_service

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.get("", summary="List Evaluations")
async def list_evaluations(
    application_id: Optional[int] = Query(None, description="Filter by application"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await evaluation_service.list_evaluations(
        db, application_id=application_id, limit=limit, offset=offset
    )


@router.get(
    "/interview/{interview_id}",
    summary="Get Interview Evaluation",
    description="Scores, recommendation and feedback for one interview.",
)
async def get_interview_evaluation(
    interview_id: int = Path(..., description="Interview ID"),
    db: AsyncSession = Depends(get_db),
):
    return await evaluation_service.get_interview_evaluation(db, interview_id)


@router.get("/{evaluation_id}", summary="Get Evaluation")
async def get_evaluation(
    evaluation_id: int = Path(..., description="Evaluation ID"),
    db: AsyncSession = Depends(get_db),
):
    return await evaluation_service.get_evaluation(db, evaluation_id)
