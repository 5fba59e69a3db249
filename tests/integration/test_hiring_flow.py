"""
Decision, offer and onboarding chain.

Replaying any step must not repeat its side effects: one offer per hire
decision, one onboarding batch per acceptance, one email per trigger.
"""

import pytest
from sqlalchemy import func, select

from api.services.decisions import record_decision
from api.services.offers import create_offer, update_offer
from api.services.onboarding import DEFAULT_TASKS, update_task
from core.exceptions import Conflict, InvalidTransition, ValidationFailed
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    DecisionType,
    Interview,
    InterviewRound,
    Job,
    JobOffer,
    OnboardingTask,
)


async def _completed_application(session, email="nisha@acme.io"):
    job = Job(title="Site Reliability Engineer", description="On-call rotation", salary_max=90000)
    candidate = Candidate(name="Nisha Rao", email=email)
    session.add_all([job, candidate])
    await session.flush()
    application = Application(
        candidate_id=candidate.id,
        job_id=job.id,
        status=ApplicationStatus.INTERVIEW_COMPLETED,
    )
    session.add(application)
    await session.commit()
    return application


async def _count(session, model, **filters):
    query = select(func.count()).select_from(model)
    for name, value in filters.items():
        query = query.where(getattr(model, name) == value)
    return (await session.execute(query)).scalar()


class TestHireDecision:
    """Hire creates exactly one offer."""

    @pytest.mark.asyncio
    async def test_hire_creates_offer_once(self, session, email_service):
        application = await _completed_application(session)

        first = await record_decision(
            session, application.id, DecisionType.HIRE, decided_by="lead-3", email_service=email_service
        )
        second = await record_decision(
            session, application.id, DecisionType.HIRE, decided_by="lead-3", email_service=email_service
        )

        assert first["triggered"] == "offer_created"
        assert first["offer_id"] is not None
        assert second["triggered"] is None
        assert second["offer_id"] is None
        assert await _count(session, JobOffer, application_id=application.id) == 1
        assert email_service.subjects() == ["Job Offer - Site Reliability Engineer"]

        offer = await session.get(JobOffer, first["offer_id"])
        assert offer.base_salary == 90000
        assert offer.notification_sent is True

    @pytest.mark.asyncio
    async def test_manual_offer_after_hire_conflicts(self, session, email_service):
        application = await _completed_application(session)
        await record_decision(session, application.id, DecisionType.HIRE, email_service=email_service)

        with pytest.raises(Conflict):
            await create_offer(session, application.id)

    @pytest.mark.asyncio
    async def test_hire_is_final(self, session):
        application = await _completed_application(session)
        await record_decision(session, application.id, DecisionType.HIRE)

        with pytest.raises(InvalidTransition):
            await record_decision(session, application.id, DecisionType.REJECT)


class TestOtherDecisions:

    @pytest.mark.asyncio
    async def test_proceed_requires_round_name(self, session):
        application = await _completed_application(session)
        with pytest.raises(ValidationFailed):
            await record_decision(session, application.id, DecisionType.PROCEED, next_round="  ")

    @pytest.mark.asyncio
    async def test_proceed_schedules_next_round_once(self, session, email_service):
        application = await _completed_application(session)

        first = await record_decision(
            session, application.id, DecisionType.PROCEED, next_round="Technical Round",
            email_service=email_service,
        )
        again = await record_decision(
            session, application.id, DecisionType.PROCEED, next_round="Technical Round",
            email_service=email_service,
        )

        assert first["triggered"] == "next_round_scheduled"
        assert again["triggered"] is None
        assert await _count(session, Interview, application_id=application.id) == 1
        assert await _count(session, InterviewRound, job_id=application.job_id) == 1
        assert email_service.subjects() == ["Next Interview Round - Site Reliability Engineer"]

        await session.refresh(application)
        assert application.status == ApplicationStatus.INTERVIEW_SCHEDULED

    @pytest.mark.asyncio
    async def test_reject(self, session):
        application = await _completed_application(session)
        result = await record_decision(session, application.id, DecisionType.REJECT, notes="Not a fit")

        assert result["triggered"] == "application_rejected"
        await session.refresh(application)
        assert application.status == ApplicationStatus.REJECTED


class TestOfferAcceptance:
    """Acceptance starts onboarding exactly once."""

    @pytest.mark.asyncio
    async def test_accept_creates_one_batch(self, session, email_service):
        application = await _completed_application(session)
        decision = await record_decision(session, application.id, DecisionType.HIRE, email_service=email_service)
        offer_id = decision["offer_id"]

        accepted = await update_offer(session, offer_id, {"status": "accepted"}, email_service)
        replay = await update_offer(session, offer_id, {"status": "accepted"}, email_service)

        assert accepted["status"] == "accepted"
        assert len(accepted["onboarding_tasks"]) == len(DEFAULT_TASKS)
        assert "onboarding_tasks" not in replay
        assert await _count(session, OnboardingTask, job_offer_id=offer_id) == len(DEFAULT_TASKS)
        assert email_service.subjects().count("Welcome aboard - Site Reliability Engineer") == 1

        await session.refresh(application)
        assert application.status == ApplicationStatus.HIRED

    @pytest.mark.asyncio
    async def test_responded_offer_is_locked(self, session):
        application = await _completed_application(session)
        decision = await record_decision(session, application.id, DecisionType.HIRE)
        await update_offer(session, decision["offer_id"], {"status": "rejected"})

        with pytest.raises(InvalidTransition):
            await update_offer(session, decision["offer_id"], {"status": "accepted"})
        with pytest.raises(Conflict):
            await update_offer(session, decision["offer_id"], {"base_salary": 100000})

    @pytest.mark.asyncio
    async def test_pending_offer_can_be_edited(self, session):
        application = await _completed_application(session)
        decision = await record_decision(session, application.id, DecisionType.HIRE)

        updated = await update_offer(session, decision["offer_id"], {"base_salary": 95000})
        assert updated["base_salary"] == 95000
        assert updated["status"] == "pending"

    @pytest.mark.asyncio
    async def test_task_completion_is_terminal(self, session):
        application = await _completed_application(session)
        decision = await record_decision(session, application.id, DecisionType.HIRE)
        accepted = await update_offer(session, decision["offer_id"], {"status": "accepted"})
        task_id = accepted["onboarding_tasks"][0]["id"]

        done = await update_task(session, task_id, {"status": "completed"})
        assert done["status"] == "completed"
        assert done["completed_at"] is not None

        with pytest.raises(InvalidTransition):
            await update_task(session, task_id, {"status": "pending"})
