"""
AI interview from invitation to evaluation, driven through the services.
"""

import pytest
from sqlalchemy import func, select

from api.services import candidate_interview
from api.services.evaluations import evaluate_interview, get_evaluation
from api.services.interviews import send_interview_invitation, upsert_config
from core.exceptions import Conflict, NotFound, TokenInvalid, ValidationFailed
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Evaluation,
    Job,
    Recommendation,
)
from tests.conftest import make_llm_client

QUESTIONS = ["Why do you want to join us?", "Describe a dataset you cleaned."]


async def _invited(session, email_service, questions=QUESTIONS):
    job = Job(title="Data Analyst", description="SQL and Python dashboards")
    candidate = Candidate(name="Kavya Menon", email="kavya@acme.io")
    session.add_all([job, candidate])
    await session.flush()
    application = Application(candidate_id=candidate.id, job_id=job.id, status=ApplicationStatus.SCREENED)
    session.add(application)
    await session.commit()

    if questions:
        await upsert_config(session, job.id, {"total_questions": len(questions), "custom_questions": questions})
    invitation = await send_interview_invitation(session, application.id, email_service)
    token = invitation["interview_url"].rsplit("/", 1)[-1]
    return application, token


async def _answer_all(session, token, count, llm_client=None):
    state = None
    for index in range(count):
        state = await candidate_interview.submit_answer(
            session,
            token,
            f"Answer {index}: we used SQL and Python together as a team to clean the data.",
            duration=42.0,
            question_index=index,
            llm_client=llm_client,
        )
    return state


class TestInterviewLifecycle:

    @pytest.mark.asyncio
    async def test_invitation_email_and_status(self, session, email_service):
        application, token = await _invited(session, email_service)

        assert token.startswith("INT_")
        assert email_service.subjects() == ["Interview Invitation - Data Analyst"]
        await session.refresh(application)
        assert application.status == ApplicationStatus.INTERVIEW_INVITED

    @pytest.mark.asyncio
    async def test_configured_questions_are_fixed(self, session, email_service):
        _, token = await _invited(session, email_service)

        first = await candidate_interview.get_interview(session, token)
        again = await candidate_interview.get_interview(session, token)

        assert first["total_questions"] == 2
        assert first["current_question"] == QUESTIONS[0]
        assert again["interview_id"] == first["interview_id"]
        assert first["candidate_name"] == "Kavya Menon"

    @pytest.mark.asyncio
    async def test_default_question_count_without_config(self, session, email_service):
        _, token = await _invited(session, email_service, questions=None)
        state = await candidate_interview.get_interview(session, token)
        assert state["total_questions"] == 8

    @pytest.mark.asyncio
    async def test_answers_complete_and_evaluate_once(self, session, email_service):
        application, token = await _invited(session, email_service)
        await candidate_interview.start_interview(session, token)

        state = await _answer_all(session, token, 2)
        assert state["status"] == "completed"
        assert len(state["responses"]) == 2

        first = await candidate_interview.complete_interview(session, token)
        assert first["evaluation_id"] == state["evaluation_id"]

        # The token is consumed by completion.
        session.expire_all()
        with pytest.raises(TokenInvalid):
            await candidate_interview.complete_interview(session, token)

        again = await evaluate_interview(session, state["interview_id"])
        assert again["id"] == state["evaluation_id"]
        assert again["source"] == "rules"
        assert (await get_evaluation(session, again["id"]))["interview_id"] == state["interview_id"]

        count = (await session.execute(select(func.count(Evaluation.id)))).scalar()
        assert count == 1
        await session.refresh(application)
        assert application.status == ApplicationStatus.INTERVIEW_COMPLETED

    @pytest.mark.asyncio
    async def test_complete_requires_all_answers(self, session, email_service):
        _, token = await _invited(session, email_service)
        await candidate_interview.get_interview(session, token)
        await candidate_interview.submit_answer(session, token, "Only one answer")

        with pytest.raises(ValidationFailed) as exc_info:
            await candidate_interview.complete_interview(session, token)
        assert exc_info.value.details == {"answered": 1, "total_questions": 2}

    @pytest.mark.asyncio
    async def test_extra_answers_rejected(self, session, email_service):
        _, token = await _invited(session, email_service)
        await candidate_interview.get_interview(session, token)
        await _answer_all(session, token, 2)

        with pytest.raises(Conflict):
            await candidate_interview.submit_answer(session, token, "One more thing")

    @pytest.mark.asyncio
    async def test_blank_answer_rejected(self, session, email_service):
        _, token = await _invited(session, email_service)
        await candidate_interview.get_interview(session, token)

        with pytest.raises(ValidationFailed):
            await candidate_interview.submit_answer(session, token, "   ")

    @pytest.mark.asyncio
    async def test_answer_before_start_is_404(self, session, email_service):
        _, token = await _invited(session, email_service)
        with pytest.raises(NotFound):
            await candidate_interview.submit_answer(session, token, "Hello")


class TestLLMEvaluation:

    @pytest.mark.asyncio
    async def test_model_scores_are_stored(self, session, email_service):
        _, token = await _invited(session, email_service)
        await candidate_interview.get_interview(session, token)
        client = make_llm_client({
            "technical_score": 82,
            "communication_score": 88,
            "cultural_fit_score": 79,
            "overall_score": 83,
            "recommendation": "hire",
            "feedback": "Clear and specific",
            "strengths": ["SQL"],
            "improvements": ["Visualisation"],
        })

        state = await _answer_all(session, token, 2, llm_client=client)
        evaluation = await session.get(Evaluation, state["evaluation_id"])

        assert evaluation.source == "llm"
        assert evaluation.overall_score == 83
        assert evaluation.recommendation == Recommendation.HIRE
        assert evaluation.strengths == ["SQL"]

    @pytest.mark.asyncio
    async def test_model_outage_falls_back_to_rules(self, session, email_service):
        _, token = await _invited(session, email_service)
        await candidate_interview.get_interview(session, token)
        client = make_llm_client(error=RuntimeError("503 from model"))

        state = await _answer_all(session, token, 2, llm_client=client)
        evaluation = await session.get(Evaluation, state["evaluation_id"])

        assert evaluation.source == "rules"
