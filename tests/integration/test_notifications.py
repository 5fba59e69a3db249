"""Re-queueing notifications whose first delivery failed."""

from unittest.mock import patch

import pytest
from sqlalchemy import select

from api.services.notifications import (
    SEND_EMAIL_TASK,
    candidate_link,
    invitation_days,
    resend_pending,
)
from api.services.screening import send_screening_email
from database.models import Candidate, Job, ScreeningToken


class TestCandidateLink:

    def test_builds_public_url(self):
        assert candidate_link("interview", "INT_abc") == "https://jobs.acme.io/interview/INT_abc"
        assert candidate_link("drive_test", "TEST_x") == "https://jobs.acme.io/drive/test/TEST_x"


class TestInvitationDays:

    def test_whole_days(self):
        with patch("api.services.notifications.settings") as settings:
            settings.interview_token_ttl_hours = 72
            assert invitation_days() == 3

    def test_short_ttl_still_reports_one_day(self):
        with patch("api.services.notifications.settings") as settings:
            settings.interview_token_ttl_hours = 12
            assert invitation_days() == 1


class TestResendPending:

    @pytest.mark.asyncio
    async def test_failed_screening_email_is_requeued_once(self, session, failing_email_service):
        job = Job(title="QA Engineer", description="Manual and automated testing")
        candidate = Candidate(name="Irfan Khan", email="irfan@acme.io")
        session.add_all([job, candidate])
        await session.commit()
        await send_screening_email(session, candidate.id, job.id, failing_email_service)

        with patch("api.services.notifications.celery_app") as celery:
            first = await resend_pending(session)
            second = await resend_pending(session)

        assert first["queued"]["screening"] == 1
        assert first["total"] == 1
        assert second["total"] == 0

        celery.send_task.assert_called_once()
        name = celery.send_task.call_args.args[0]
        to, subject, body, _html = celery.send_task.call_args.kwargs["args"]
        assert name == SEND_EMAIL_TASK
        assert to == "irfan@acme.io"
        assert subject == "Screening Questions - QA Engineer"
        token = (await session.execute(select(ScreeningToken))).scalar_one()
        assert token.notification_sent is True
        assert token.token in body

    @pytest.mark.asyncio
    async def test_nothing_pending(self, session):
        with patch("api.services.notifications.celery_app") as celery:
            result = await resend_pending(session)

        assert result == {"queued": {"screening": 0, "interview": 0, "offer": 0, "drive": 0}, "total": 0}
        celery.send_task.assert_not_called()
