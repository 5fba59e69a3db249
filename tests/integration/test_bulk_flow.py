"""
Bulk resume uploads processed file by file.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from api.services.bulk import (
    PROCESS_TASK,
    create_bulk_job,
    get_bulk_job,
    process_bulk_file,
    send_screening_emails,
    shortlist_files,
)
from core.exceptions import NotFound, ValidationFailed
from core.storage.local import LocalStorage
from database.models import Application, ApplicationStatus, BulkJobFile, Candidate, Job

GOOD_RESUME = b"""Anita Desai
anita@acme.io
+91 98765 43210
Backend developer, 4 years experience with Python, SQL and React.
"""
NO_EMAIL_RESUME = b"""Vikram Shah
Backend developer with Python and SQL.
"""
BINARY = bytes(range(256)) * 4


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "uploads"))


async def _job(session):
    job = Job(
        title="Backend Developer",
        description="Backend developer. 3+ years experience with Python and SQL.",
    )
    session.add(job)
    await session.commit()
    return job


class TestBulkUpload:

    @pytest.mark.asyncio
    async def test_queues_one_task_per_file(self, session, storage):
        job = await _job(session)

        with patch("api.services.bulk.celery_app.send_task") as send_task:
            result = await create_bulk_job(
                session,
                job.id,
                [("anita.txt", GOOD_RESUME), ("vikram.txt", NO_EMAIL_RESUME)],
                created_by="recruiter-2",
                storage=storage,
            )

        assert result["status"] == "queued"
        assert result["total_files"] == 2
        assert send_task.call_count == 2
        assert send_task.call_args.args == (PROCESS_TASK,)
        assert all("stored_path" not in f for f in result["files"])

    @pytest.mark.asyncio
    async def test_requires_files(self, session, storage):
        job = await _job(session)
        with pytest.raises(ValidationFailed):
            await create_bulk_job(session, job.id, [], storage=storage)

    @pytest.mark.asyncio
    async def test_unknown_job(self, session, storage):
        with pytest.raises(NotFound):
            await create_bulk_job(session, 404, [("a.txt", GOOD_RESUME)], storage=storage)


class TestBulkProcessing:
    """Worker-side processing of each stored file."""

    @pytest.mark.asyncio
    async def test_mixed_batch(self, session, storage):
        job = await _job(session)
        with patch("api.services.bulk.celery_app.send_task"):
            created = await create_bulk_job(
                session,
                job.id,
                [
                    ("anita.txt", GOOD_RESUME),
                    ("vikram.txt", NO_EMAIL_RESUME),
                    ("scan.bin", BINARY),
                ],
                storage=storage,
            )
        good, no_email, binary = (f["id"] for f in created["files"])

        processed = await process_bulk_file(session, good, storage)
        assert processed["status"] == "completed"
        assert processed["detected_type"] == "txt"
        assert processed["match_score"] > 0

        missing = await process_bulk_file(session, no_email, storage)
        assert missing["status"] == "failed"
        assert "email" in missing["error"].lower()

        unreadable = await process_bulk_file(session, binary, storage)
        assert unreadable["status"] == "failed"
        assert "Unsupported" in unreadable["error"]

        progress = await get_bulk_job(session, created["id"])
        assert progress["status"] == "completed"
        assert progress["successful"] == 1
        assert progress["failed"] == 2
        assert progress["progress"] == 100

        candidate = (await session.execute(select(Candidate))).scalar_one()
        assert candidate.name == "Anita Desai"
        assert candidate.email == "anita@acme.io"
        assert "python" in candidate.skills
        application = (await session.execute(select(Application))).scalar_one()
        assert application.source == "bulk_upload"

    @pytest.mark.asyncio
    async def test_reprocessing_is_a_no_op(self, session, storage):
        job = await _job(session)
        with patch("api.services.bulk.celery_app.send_task"):
            created = await create_bulk_job(session, job.id, [("anita.txt", GOOD_RESUME)], storage=storage)
        file_id = created["files"][0]["id"]

        first = await process_bulk_file(session, file_id, storage)
        again = await process_bulk_file(session, file_id, storage)

        assert again == first
        count = (await session.execute(select(func.count(Application.id)))).scalar()
        assert count == 1

    @pytest.mark.asyncio
    async def test_same_candidate_across_uploads(self, session, storage):
        job = await _job(session)
        with patch("api.services.bulk.celery_app.send_task"):
            first = await create_bulk_job(session, job.id, [("v1.txt", GOOD_RESUME)], storage=storage)
            second = await create_bulk_job(
                session, job.id, [("v2.txt", GOOD_RESUME.replace(b"React", b"Java"))], storage=storage
            )

        await process_bulk_file(session, first["files"][0]["id"], storage)
        await process_bulk_file(session, second["files"][0]["id"], storage)

        candidates = (await session.execute(select(func.count(Candidate.id)))).scalar()
        applications = (await session.execute(select(func.count(Application.id)))).scalar()
        assert (candidates, applications) == (1, 1)

        candidate = (await session.execute(select(Candidate))).scalar_one()
        assert candidate.resume_file_name == "v2.txt"

    @pytest.mark.asyncio
    async def test_missing_stored_file_fails_row(self, session, storage):
        job = await _job(session)
        with patch("api.services.bulk.celery_app.send_task"):
            created = await create_bulk_job(session, job.id, [("anita.txt", GOOD_RESUME)], storage=storage)

        other_root = LocalStorage(str(storage.base_path.parent / "elsewhere"))
        result = await process_bulk_file(session, created["files"][0]["id"], other_root)

        assert result["status"] == "failed"
        assert "not found" in result["error"].lower()


class TestBulkSelection:
    """Recruiter actions on the processed files of a bulk job."""

    async def _processed(self, session, storage):
        job = await _job(session)
        with patch("api.services.bulk.celery_app.send_task"):
            created = await create_bulk_job(
                session,
                job.id,
                [("anita.txt", GOOD_RESUME), ("vikram.txt", NO_EMAIL_RESUME)],
                storage=storage,
            )
        good, no_email = (f["id"] for f in created["files"])
        await process_bulk_file(session, good, storage)
        await process_bulk_file(session, no_email, storage)
        return created["id"], good, no_email

    @pytest.mark.asyncio
    async def test_shortlist_only_processed_files(self, session, storage):
        bulk_job_id, good, no_email = await self._processed(session, storage)

        result = await shortlist_files(session, bulk_job_id, [good, no_email, 999])

        assert result == {"shortlisted": [good], "skipped": [no_email, 999]}
        row = await session.get(BulkJobFile, good)
        assert row.shortlisted is True

    @pytest.mark.asyncio
    async def test_unknown_bulk_job(self, session):
        with pytest.raises(NotFound):
            await shortlist_files(session, 404, [1])

    @pytest.mark.asyncio
    async def test_send_screening_starts_screening(self, session, storage, email_service):
        bulk_job_id, good, no_email = await self._processed(session, storage)

        result = await send_screening_emails(session, bulk_job_id, [good, no_email], email_service)

        assert result == {"sent": [good], "undelivered": [], "skipped": [no_email]}
        assert email_service.subjects() == ["Screening Questions - Backend Developer"]
        assert email_service.sent[0]["to"] == "anita@acme.io"
        application = (await session.execute(select(Application))).scalar_one()
        assert application.status == ApplicationStatus.SCREENING_SENT

    @pytest.mark.asyncio
    async def test_applications_past_screening_are_skipped(self, session, storage, email_service):
        bulk_job_id, good, _ = await self._processed(session, storage)
        application = (await session.execute(select(Application))).scalar_one()
        application.status = ApplicationStatus.INTERVIEW_INVITED
        await session.commit()

        result = await send_screening_emails(session, bulk_job_id, [good], email_service)

        assert result == {"sent": [], "undelivered": [], "skipped": [good]}
        assert email_service.sent == []
