"""
Bulk resume upload endpoints.

Files are stored and queued; processing happens in Celery workers and is
polled through ``GET /bulk-jobs/{id}``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_email_service
from api.schemas.candidates import BulkFileSelection
from api.services import bulk as bulk_service

router = APIRouter(prefix="/bulk-jobs", tags=["bulk"])


@router.post(
    "",
    status_code=202,
    summary="Upload Resumes In Bulk",
    description="Upload several resumes for one job. Returns immediately with the queued files.",
)
async def create_bulk_job(
    job_id: int = Form(..., description="Job the resumes apply to"),
    files: List[UploadFile] = File(..., description="Resume files"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    uploads = [(upload.filename or "resume", await upload.read()) for upload in files]
    return await bulk_service.create_bulk_job(db, job_id, uploads, created_by=actor)


@router.get("/{bulk_job_id}", summary="Get Bulk Job Progress")
async def get_bulk_job(
    bulk_job_id: int = Path(..., description="Bulk job ID"),
    db: AsyncSession = Depends(get_db),
):
    return await bulk_service.get_bulk_job(db, bulk_job_id)


@router.post("/{bulk_job_id}/shortlist", summary="Shortlist Bulk Candidates")
async def shortlist(
    body: BulkFileSelection,
    bulk_job_id: int = Path(..., description="Bulk job ID"),
    db: AsyncSession = Depends(get_db),
):
    """Flag processed files as shortlisted; others are reported as skipped."""
    return await bulk_service.shortlist_files(db, bulk_job_id, body.file_ids)


@router.post(
    "/{bulk_job_id}/send-screening-emails",
    summary="Send Screening Emails",
    description="Start email screening for the candidates behind the selected processed files.",
)
async def send_screening_emails(
    body: BulkFileSelection,
    bulk_job_id: int = Path(..., description="Bulk job ID"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    return await bulk_service.send_screening_emails(
        db, bulk_job_id, body.file_ids, email_service=email_service
    )
