"""
Email screening: questionnaire out, reply in, invitation or rejection.
"""

import pytest
from sqlalchemy import func, select

from api.services.inbound_email import InboundEmail, handle_inbound_email
from api.services.screening import (
    process_screening_reply,
    send_screening_email,
    submit_screening,
    verify_screening,
)
from core.exceptions import NotFound, TokenInvalid, ValidationFailed
from core.workflow.screening import ScreeningAnswers
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    InterviewToken,
    Job,
    ScreeningToken,
    WorkType,
)

QUALIFYING_REPLY = "Yes, I have 5 years experience and current CTC is 8 LPA, available immediately"


async def _setup(session, email="farhan@acme.io"):
    job = Job(
        title="Platform Engineer",
        description="Platform engineer. 3+ years experience required.",
        requirements="Please share your salary expectations and notice period.",
        work_type=WorkType.REMOTE,
    )
    candidate = Candidate(name="Farhan Ali", email=email)
    session.add_all([job, candidate])
    await session.commit()
    return job, candidate


async def _count(session, model):
    return (await session.execute(select(func.count()).select_from(model))).scalar()


class TestSendScreening:

    @pytest.mark.asyncio
    async def test_creates_application_and_sends(self, session, email_service):
        job, candidate = await _setup(session)

        result = await send_screening_email(session, candidate.id, job.id, email_service)

        assert result["status"] == "screening_sent"
        assert result["notification_sent"] is True
        assert email_service.subjects() == ["Screening Questions - Platform Engineer"]
        assert "https://jobs.acme.io/screening/SCR_" in email_service.sent[0]["body"]
        assert await _count(session, Application) == 1

    @pytest.mark.asyncio
    async def test_failed_delivery_is_recorded(self, session, failing_email_service):
        job, candidate = await _setup(session)
        result = await send_screening_email(session, candidate.id, job.id, failing_email_service)

        assert result["notification_sent"] is False
        token = (await session.execute(select(ScreeningToken))).scalar_one()
        assert token.notification_sent is False

    @pytest.mark.asyncio
    async def test_unknown_candidate(self, session, email_service):
        job, _ = await _setup(session)
        with pytest.raises(NotFound):
            await send_screening_email(session, 999, job.id, email_service)


class TestEmailReplies:
    """Replies arriving through the inbound webhook."""

    @pytest.mark.asyncio
    async def test_complete_reply_invites_to_interview(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)

        email = InboundEmail(
            sender="farhan@acme.io",
            subject="Re: Screening Questions - Platform Engineer",
            text=QUALIFYING_REPLY + "\n\nOn Mon, Recruiter wrote:\n> Please answer...",
        )
        result = await handle_inbound_email(session, email, email_service)

        assert result["status"] == "processed"
        assert result["qualified"] is True
        assert result["application_status"] == "interview_invited"
        assert email_service.subjects()[-1] == "Interview Invitation - Platform Engineer"
        assert await _count(session, InterviewToken) == 1

        token = (await session.execute(select(ScreeningToken))).scalar_one()
        assert token.channel == "email"
        assert token.qualified is True
        assert token.result["criteria_count"] == 3
        assert "Recruiter wrote" not in token.responses[0]["answer"]

    @pytest.mark.asyncio
    async def test_vague_reply_is_rejected(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)

        result = await process_screening_reply(session, "farhan@acme.io", "not sure", email_service)

        assert result["qualified"] is False
        assert result["application_status"] == "rejected"
        assert email_service.subjects()[-1] == "Your application for Platform Engineer"
        assert await _count(session, InterviewToken) == 0

    @pytest.mark.asyncio
    async def test_replayed_reply_is_ignored(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)

        await process_screening_reply(session, "farhan@acme.io", QUALIFYING_REPLY, email_service)
        sent_before = len(email_service.sent)
        replay = await process_screening_reply(session, "farhan@acme.io", QUALIFYING_REPLY, email_service)

        assert replay == {"status": "ignored", "reason": "no_pending_screening"}
        assert len(email_service.sent) == sent_before
        assert await _count(session, InterviewToken) == 1

    @pytest.mark.asyncio
    async def test_empty_reply_keeps_token_live(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)

        result = await process_screening_reply(session, "farhan@acme.io", "   ", email_service)

        assert result == {"status": "ignored", "reason": "empty_reply"}
        token = (await session.execute(select(ScreeningToken))).scalar_one()
        assert token.used is False


class TestScreeningForm:

    @pytest.mark.asyncio
    async def test_verify_and_submit(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)
        token = (await session.execute(select(ScreeningToken))).scalar_one().token

        form = await verify_screening(session, token)
        assert form["candidate"]["name"] == "Farhan Ali"
        assert len(form["questions"]) == 6

        answers = ScreeningAnswers.from_form(
            years_of_experience=2.5, expected_salary_lpa=15, notice_period_days=60
        )
        result = await submit_screening(session, token, answers, email_service)

        # salary 1 + experience 0.5 (2.5 of 3 years) + notice 1 over 3 criteria
        assert result["qualified"] is True
        assert result["qualification_rate"] == pytest.approx(0.8333, abs=1e-4)

        session.expire_all()
        with pytest.raises(TokenInvalid):
            await submit_screening(session, token, answers, email_service)

        application = (await session.execute(select(Application))).scalar_one()
        assert application.status == ApplicationStatus.INTERVIEW_INVITED

    @pytest.mark.asyncio
    async def test_empty_form_rejected(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)
        token = (await session.execute(select(ScreeningToken))).scalar_one().token

        with pytest.raises(ValidationFailed):
            await submit_screening(session, token, ScreeningAnswers.from_form(), email_service)


class TestResentScreening:
    """A second screening email leaves two live tokens for one application."""

    async def _resend(self, session, email_service):
        job, candidate = await _setup(session)
        await send_screening_email(session, candidate.id, job.id, email_service)
        await send_screening_email(session, candidate.id, job.id, email_service)
        tokens = (
            await session.execute(select(ScreeningToken).order_by(ScreeningToken.id))
        ).scalars().all()
        return [row.token for row in tokens]

    @pytest.mark.asyncio
    async def test_email_reply_after_form_is_stored_without_trigger(self, session, email_service):
        tokens = await self._resend(session, email_service)
        await submit_screening(
            session, tokens[0], ScreeningAnswers.from_text(QUALIFYING_REPLY), email_service
        )
        sent_before = len(email_service.sent)

        email = InboundEmail(
            sender="farhan@acme.io",
            subject="Re: Screening Questions",
            text=QUALIFYING_REPLY,
        )
        result = await handle_inbound_email(session, email, email_service)

        assert result == {"status": "ignored", "reason": "already_screened"}
        assert len(email_service.sent) == sent_before
        assert await _count(session, InterviewToken) == 1

        session.expire_all()
        application = (await session.execute(select(Application))).scalar_one()
        assert application.status == ApplicationStatus.INTERVIEW_INVITED
        second = (
            await session.execute(select(ScreeningToken).where(ScreeningToken.token == tokens[1]))
        ).scalar_one()
        assert second.used is True
        assert second.channel == "email"

    @pytest.mark.asyncio
    async def test_second_form_submission_keeps_status(self, session, email_service):
        tokens = await self._resend(session, email_service)
        await process_screening_reply(session, "farhan@acme.io", "not sure", email_service)

        result = await submit_screening(
            session, tokens[0], ScreeningAnswers.from_text(QUALIFYING_REPLY), email_service
        )

        assert result["success"] is True
        assert result["status"] == "rejected"
        assert result["message"] == "Thank you for your responses. We will be in touch."
        assert await _count(session, InterviewToken) == 0
