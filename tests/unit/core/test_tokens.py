"""
Tests for candidate token issue, verification and single-use consumption.
"""

from datetime import timedelta

import pytest

from core.exceptions import TokenExpired, TokenInvalid
from core.security import TokenKind, generate_token, tokens_match
from core.workflow.tokens import (
    consume_interview_token,
    consume_screening_token,
    issue_interview_token,
    issue_screening_token,
    verify_interview_token,
    verify_screening_token,
)
from database.models import Application, ApplicationStatus, Candidate, Job


async def _application(session):
    job = Job(title="Data Analyst", description="SQL and dashboards")
    candidate = Candidate(name="Ravi Kumar", email="ravi@acme.io")
    session.add_all([job, candidate])
    await session.flush()
    application = Application(
        candidate_id=candidate.id, job_id=job.id, status=ApplicationStatus.APPLIED
    )
    session.add(application)
    await session.commit()
    return application


class TestTokenFormat:
    """Generated token shape."""

    @pytest.mark.parametrize("kind", list(TokenKind))
    def test_prefix_and_length(self, kind):
        token = generate_token(kind)
        assert token.startswith(f"{kind.value}_")
        assert len(token) > 40

    def test_tokens_are_unique(self):
        assert len({generate_token(TokenKind.INTERVIEW) for _ in range(100)}) == 100

    def test_constant_time_compare(self):
        assert tokens_match("INT_abc", "INT_abc")
        assert not tokens_match("INT_abc", "INT_abd")


class TestInterviewTokens:
    """Interview token lifecycle."""

    @pytest.mark.asyncio
    async def test_issue_and_verify(self, session):
        application = await _application(session)
        row = await issue_interview_token(session, application.id)
        await session.commit()

        verified = await verify_interview_token(session, row.token)
        assert verified.id == row.id
        assert verified.used is False

    @pytest.mark.asyncio
    async def test_unknown_token_is_invalid(self, session):
        with pytest.raises(TokenInvalid) as exc_info:
            await verify_interview_token(session, "INT_does-not-exist")
        assert exc_info.value.message == "Invalid or expired interview token"

    @pytest.mark.asyncio
    async def test_expired_token_reads_the_same_as_unknown(self, session):
        application = await _application(session)
        row = await issue_interview_token(session, application.id, ttl=timedelta(seconds=-1))
        await session.commit()

        with pytest.raises(TokenInvalid) as exc_info:
            await verify_interview_token(session, row.token)
        assert exc_info.value.message == "Invalid or expired interview token"

    @pytest.mark.asyncio
    async def test_consume_once(self, session):
        application = await _application(session)
        row = await issue_interview_token(session, application.id)
        await session.commit()

        assert await consume_interview_token(session, row.token) is True
        await session.commit()
        assert await consume_interview_token(session, row.token) is False

        session.expire_all()
        with pytest.raises(TokenInvalid):
            await verify_interview_token(session, row.token)

    @pytest.mark.asyncio
    async def test_repeated_consumers_have_one_winner(self, session):
        application = await _application(session)
        row = await issue_interview_token(session, application.id)
        await session.commit()

        results = []
        for _ in range(5):
            results.append(await consume_interview_token(session, row.token))
        await session.commit()

        assert results.count(True) == 1


class TestScreeningTokens:
    """Screening tokens report expiry separately when asked."""

    @pytest.mark.asyncio
    async def test_expired_reports_410_when_requested(self, session):
        application = await _application(session)
        row = await issue_screening_token(
            session,
            application.candidate_id,
            application.job_id,
            application_id=application.id,
            ttl=timedelta(seconds=-1),
        )
        await session.commit()

        with pytest.raises(TokenExpired) as exc_info:
            await verify_screening_token(session, row.token, report_expiry=True)
        assert exc_info.value.status_code == 410

        with pytest.raises(TokenInvalid):
            await verify_screening_token(session, row.token)

    @pytest.mark.asyncio
    async def test_used_token_is_invalid_not_expired(self, session):
        application = await _application(session)
        row = await issue_screening_token(session, application.candidate_id, application.job_id)
        await session.commit()
        assert await consume_screening_token(session, row.token)
        await session.commit()
        session.expire_all()

        with pytest.raises(TokenInvalid):
            await verify_screening_token(session, row.token, report_expiry=True)

    @pytest.mark.asyncio
    async def test_expired_token_cannot_be_consumed(self, session):
        application = await _application(session)
        row = await issue_screening_token(
            session, application.candidate_id, application.job_id, ttl=timedelta(seconds=-1)
        )
        await session.commit()
        assert await consume_screening_token(session, row.token) is False
