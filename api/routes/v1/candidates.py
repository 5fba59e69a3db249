"""
Candidate management endpoints.

Includes resume upload and the recruiter action that starts email screening.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_email_service
from api.schemas.candidates import CandidateCreate, CandidateUpdate, SendScreeningRequest
from api.services import candidates as candidate_service
from api.services import screening as screening_service

router = APIRouter(prefix="/candidates", tags=["candidates"])


@router.get("", summary="List Candidates")
async def list_candidates(
    search: Optional[str] = Query(None, description="Match against name or email"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve a paginated list of candidates (resume text omitted)."""
    return await candidate_service.list_candidates(db, search=search, limit=limit, offset=offset)


@router.get("/archived", summary="List Archived Candidates")
async def list_archived_candidates(
    search: Optional[str] = Query(None, description="Match against name or email"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Archived candidates, most recently archived first."""
    return await candidate_service.list_candidates(
        db, search=search, limit=limit, offset=offset, archived=True
    )


@router.post("", status_code=201, summary="Create Candidate")
async def create_candidate(body: CandidateCreate, db: AsyncSession = Depends(get_db)):
    """Create a candidate. Emails are unique; a duplicate is 409."""
    return await candidate_service.create_candidate(db, body.model_dump())


@router.post(
    "/send-screening-email",
    summary="Send Screening Email",
    description="Issue a screening link for a candidate and job and email it.",
)
async def send_screening_email(
    body: SendScreeningRequest,
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    return await screening_service.send_screening_email(
        db, body.candidate_id, body.job_id, email_service=email_service
    )


@router.get("/{candidate_id}", summary="Get Candidate")
async def get_candidate(
    candidate_id: int = Path(..., description="Candidate ID"),
    db: AsyncSession = Depends(get_db),
):
    """Candidate profile with all of its applications."""
    return await candidate_service.get_candidate(db, candidate_id)


@router.put("/{candidate_id}", summary="Update Candidate")
async def update_candidate(
    body: CandidateUpdate,
    candidate_id: int = Path(..., description="Candidate ID"),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.update_candidate(db, candidate_id, body.model_dump(exclude_unset=True))


@router.delete("/{candidate_id}", summary="Delete Candidate")
async def delete_candidate(
    candidate_id: int = Path(..., description="Candidate ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """Delete a candidate and everything downstream of its applications."""
    return await candidate_service.delete_candidate(db, candidate_id, actor=actor)


@router.post("/{candidate_id}/archive", summary="Archive Candidate")
async def archive_candidate(
    candidate_id: int = Path(..., description="Candidate ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """Hide a candidate from the default listing. Idempotent."""
    return await candidate_service.set_archived(db, candidate_id, True, actor=actor)


@router.post("/{candidate_id}/restore", summary="Restore Candidate")
async def restore_candidate(
    candidate_id: int = Path(..., description="Candidate ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await candidate_service.set_archived(db, candidate_id, False, actor=actor)


@router.post(
    "/{candidate_id}/resume",
    summary="Upload Resume",
    description="PDF, DOCX or TXT, detected from file content. Unreadable files are rejected with 400.",
)
async def upload_resume(
    candidate_id: int = Path(..., description="Candidate ID"),
    file: UploadFile = File(..., description="Resume file"),
    db: AsyncSession = Depends(get_db),
):
    data = await file.read()
    return await candidate_service.upload_resume(db, candidate_id, file.filename or "resume", data)
