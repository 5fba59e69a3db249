"""
Application management endpoints.

Status changes are validated against the application pipeline; an illegal
move is reported as 409.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_email_service, get_llm_client
from api.schemas.candidates import ApplicationCreate, ApplicationUpdate
from api.services import applications as application_service
from api.services import interviews as interview_service
from database.models import ApplicationStatus

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("", summary="List Applications")
async def list_applications(
    job_id: Optional[int] = Query(None, description="Filter by job"),
    candidate_id: Optional[int] = Query(None, description="Filter by candidate"),
    status: Optional[ApplicationStatus] = Query(None, description="Filter by pipeline status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.list_applications(
        db, job_id=job_id, candidate_id=candidate_id, status=status, limit=limit, offset=offset
    )


@router.post("", status_code=201, summary="Create Application")
async def create_application(body: ApplicationCreate, db: AsyncSession = Depends(get_db)):
    """Apply a candidate to a job. One application per candidate and job."""
    return await application_service.create_application(db, body.candidate_id, body.job_id, source=body.source)


@router.get("/{application_id}", summary="Get Application")
async def get_application(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.get_application(db, application_id)


@router.put("/{application_id}", summary="Update Application")
async def update_application(
    body: ApplicationUpdate,
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await application_service.update_application(
        db, application_id, status=body.status, current_round=body.current_round, actor=actor
    )


@router.delete("/{application_id}", summary="Delete Application")
async def delete_application(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await application_service.delete_application(db, application_id, actor=actor)


@router.post(
    "/{application_id}/calculate-match",
    summary="Calculate Match Score",
    description="Score the candidate's resume against the job requirements and store the result.",
)
async def calculate_match(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    return await application_service.calculate_match(db, application_id, llm_client=llm_client)


@router.post(
    "/{application_id}/interview-token",
    summary="Send AI Interview Invitation",
    description="Issue an interview token for the application and email the interview link.",
)
async def send_interview_invitation(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    return await interview_service.send_interview_invitation(db, application_id, email_service=email_service)
