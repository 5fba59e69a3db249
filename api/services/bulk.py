"""
Bulk resume processing.

Uploads are written to local storage and recorded as BulkJobFile rows; each
file is then handed to a Celery worker which extracts the resume, creates or
updates the candidate, links an application to the job and scores the match.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.applications import calculate_match
from api.services.candidates import apply_resume, find_candidate_by_email, parse_resume
from api.services.screening import send_screening_email
from core.exceptions import ExtractionFailed, InvalidTransition, NotFound, ValidationFailed
from core.integrations.email import EmailService
from core.storage.local import LocalStorage
from database.models import (
    Application,
    ApplicationStatus,
    BulkFileStatus,
    BulkJob,
    BulkJobFile,
    Candidate,
    Job,
)
from lib.matching import guess_contact
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)

PROCESS_TASK = "workers.tasks.bulk.process_resume_file"
MAX_FILES = 100


async def create_bulk_job(
    session: AsyncSession,
    job_id: int,
    files: Sequence[Tuple[str, bytes]],
    created_by: Optional[str] = None,
    storage: Optional[LocalStorage] = None,
) -> Dict[str, Any]:
    """
    Store uploaded resumes and queue one processing task per file.

    Args:
        session: Database session
        job_id: Job the resumes are applying to
        files: ``(file_name, data)`` pairs
        created_by: Actor recorded on the job
        storage: Upload storage, defaults to ``LocalStorage()``

    Returns:
        The bulk job with its queued files
    """
    if not await session.get(Job, job_id):
        raise NotFound("Job not found")
    if not files:
        raise ValidationFailed("At least one file is required")
    if len(files) > MAX_FILES:
        raise ValidationFailed(f"At most {MAX_FILES} files can be uploaded at once")

    storage = storage or LocalStorage()
    bulk_job = BulkJob(job_id=job_id, created_by=created_by)
    session.add(bulk_job)
    await session.flush()

    rows: List[BulkJobFile] = []
    for file_name, data in files:
        stored_path = storage.save(data, file_name, subfolder=f"bulk/{bulk_job.id}")
        row = BulkJobFile(
            bulk_job_id=bulk_job.id,
            file_name=file_name,
            stored_path=stored_path,
            status=BulkFileStatus.QUEUED,
        )
        session.add(row)
        rows.append(row)
    await session.commit()

    for row in rows:
        celery_app.send_task(PROCESS_TASK, args=[row.id])
    logger.info("Queued %d resumes for bulk job %s", len(rows), bulk_job.id)

    return {
        **bulk_job.to_dict(),
        "status": "queued",
        "total_files": len(rows),
        "files": [row.to_dict(exclude=("stored_path",)) for row in rows],
    }


async def get_bulk_job(session: AsyncSession, bulk_job_id: int) -> Dict[str, Any]:
    """Progress and per-file results of a bulk job."""
    bulk_job = await session.get(BulkJob, bulk_job_id)
    if not bulk_job:
        raise NotFound("Bulk job not found")
    result = await session.execute(
        select(BulkJobFile).where(BulkJobFile.bulk_job_id == bulk_job_id).order_by(BulkJobFile.id)
    )
    files = list(result.scalars().all())

    counts = {status.value: 0 for status in BulkFileStatus}
    for row in files:
        counts[row.status.value] += 1
    processed = counts["completed"] + counts["failed"]

    if files and processed == len(files):
        status = "completed"
    elif processed or counts["processing"]:
        status = "processing"
    else:
        status = "queued"

    return {
        **bulk_job.to_dict(),
        "status": status,
        "total_files": len(files),
        "processed": processed,
        "successful": counts["completed"],
        "failed": counts["failed"],
        "progress": round(processed / len(files) * 100) if files else 0,
        "files": [row.to_dict(exclude=("stored_path",)) for row in files],
    }


async def process_bulk_file(
    session: AsyncSession, file_id: int, storage: Optional[LocalStorage] = None
) -> Dict[str, Any]:
    """
    Process one stored resume. Failures are recorded on the file row rather
    than raised, so one bad file never stalls the rest of the job.
    """
    row = await session.get(BulkJobFile, file_id)
    if row is None:
        raise NotFound("Bulk job file not found")
    if row.status in (BulkFileStatus.COMPLETED, BulkFileStatus.FAILED):
        return row.to_dict(exclude=("stored_path",))

    row.status = BulkFileStatus.PROCESSING
    await session.commit()

    bulk_job = await session.get(BulkJob, row.bulk_job_id)
    storage = storage or LocalStorage()
    try:
        data = storage.read(row.stored_path)
        file_type, text = await parse_resume(data)
    except (ExtractionFailed, FileNotFoundError) as exc:
        return await _fail(session, row, str(exc))

    row.detected_type = file_type
    contact = guess_contact(text)
    if not contact["email"]:
        return await _fail(session, row, "No email address found in resume")

    job_id, file_name = bulk_job.job_id, row.file_name
    try:
        candidate, application = await _attach(session, job_id, file_name, contact, file_type, text)
    except IntegrityError:
        # another worker created the same candidate or application first
        await session.rollback()
        await session.refresh(row)
        row.detected_type = file_type
        candidate, application = await _attach(session, job_id, file_name, contact, file_type, text)

    match = await calculate_match(session, application.id)
    row.candidate_id = candidate.id
    row.application_id = application.id
    row.match_score = match["match_score"]
    row.status = BulkFileStatus.COMPLETED
    row.error = None
    await session.commit()

    logger.info("Bulk file %s processed: candidate %s, match %.1f", file_id, candidate.id, row.match_score)
    return row.to_dict(exclude=("stored_path",))


async def _attach(
    session: AsyncSession,
    job_id: int,
    file_name: str,
    contact: Dict[str, Any],
    file_type: str,
    text: str,
) -> Tuple[Candidate, Application]:
    candidate = await find_candidate_by_email(session, contact["email"])
    if candidate is None:
        candidate = Candidate(
            name=contact["name"] or contact["email"].split("@")[0],
            email=contact["email"],
            phone=contact["phone"],
        )
        session.add(candidate)
    apply_resume(candidate, file_name, file_type, text)
    await session.flush()

    result = await session.execute(
        select(Application).where(
            Application.candidate_id == candidate.id, Application.job_id == job_id
        )
    )
    application = result.scalar_one_or_none()
    if application is None:
        application = Application(
            candidate_id=candidate.id,
            job_id=job_id,
            status=ApplicationStatus.APPLIED,
            source="bulk_upload",
        )
        session.add(application)
        await session.flush()
    await session.commit()
    return candidate, application


async def _fail(session: AsyncSession, row: BulkJobFile, error: str) -> Dict[str, Any]:
    row.status = BulkFileStatus.FAILED
    row.error = error
    await session.commit()
    logger.warning("Bulk file %s failed: %s", row.id, error)
    return row.to_dict(exclude=("stored_path",))


async def _selected_files(
    session: AsyncSession, bulk_job_id: int, file_ids: Sequence[int]
) -> Tuple[BulkJob, List[BulkJobFile], List[int]]:
    """Completed files of the bulk job among ``file_ids``, plus the ids skipped."""
    bulk_job = await session.get(BulkJob, bulk_job_id)
    if not bulk_job:
        raise NotFound("Bulk job not found")
    result = await session.execute(
        select(BulkJobFile)
        .where(
            BulkJobFile.bulk_job_id == bulk_job_id,
            BulkJobFile.id.in_(list(file_ids)),
            BulkJobFile.status == BulkFileStatus.COMPLETED,
        )
        .order_by(BulkJobFile.id)
    )
    rows = list(result.scalars().all())
    found = {row.id for row in rows}
    return bulk_job, rows, [file_id for file_id in file_ids if file_id not in found]


async def shortlist_files(
    session: AsyncSession, bulk_job_id: int, file_ids: Sequence[int]
) -> Dict[str, Any]:
    """Mark processed files as shortlisted. Unknown or unprocessed ids are skipped."""
    _, rows, skipped = await _selected_files(session, bulk_job_id, file_ids)
    for row in rows:
        row.shortlisted = True
    await session.commit()
    return {"shortlisted": [row.id for row in rows], "skipped": skipped}


async def send_screening_emails(
    session: AsyncSession,
    bulk_job_id: int,
    file_ids: Sequence[int],
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Start email screening for the candidates behind the selected files.

    Each candidate goes through the normal screening trigger against the
    bulk job's role. Applications already past screening are skipped.
    """
    bulk_job, rows, skipped = await _selected_files(session, bulk_job_id, file_ids)
    job_id = bulk_job.job_id
    # plain values: a rollback below expires the loaded rows
    targets = [(row.id, row.candidate_id) for row in rows]
    sent, undelivered = [], []
    for file_id, candidate_id in targets:
        if candidate_id is None:
            skipped.append(file_id)
            continue
        try:
            result = await send_screening_email(session, candidate_id, job_id, email_service)
        except InvalidTransition:
            await session.rollback()
            skipped.append(file_id)
            continue
        (sent if result["notification_sent"] else undelivered).append(file_id)

    logger.info(
        "Bulk job %s screening: %d sent, %d undelivered, %d skipped",
        bulk_job_id,
        len(sent),
        len(undelivered),
        len(skipped),
    )
    return {"sent": sent, "undelivered": undelivered, "skipped": skipped}
