"""
Two requests racing on the same interview, each with its own session on a
shared database file.
"""

from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from api.services import candidate_interview, evaluations
from api.services.interviews import send_interview_invitation, upsert_config
from core.exceptions import Conflict
from database.engine import Base
from database.models import (
    Application,
    ApplicationStatus,
    Candidate,
    Evaluation,
    Interview,
    InterviewStatus,
    Job,
    Recommendation,
)

QUESTIONS = ["Walk us through a release you owned.", "How do you review code?"]


@pytest_asyncio.fixture
async def race_db(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _application(session):
    job = Job(title="Release Engineer", description="CI pipelines and Python tooling")
    candidate = Candidate(name="Meera Nair", email="meera@acme.io")
    session.add_all([job, candidate])
    await session.flush()
    application = Application(candidate_id=candidate.id, job_id=job.id, status=ApplicationStatus.SCREENED)
    session.add(application)
    await session.commit()
    return job, application


class TestConcurrentAnswers:

    @pytest.mark.asyncio
    async def test_second_writer_of_same_question_gets_conflict(self, race_db, email_service):
        async with race_db() as first, race_db() as second:
            job, application = await _application(first)
            await upsert_config(first, job.id, {"total_questions": 2, "custom_questions": QUESTIONS})
            invitation = await send_interview_invitation(first, application.id, email_service)
            token = invitation["interview_url"].rsplit("/", 1)[-1]
            state = await candidate_interview.start_interview(first, token)
            interview_id = state["interview_id"]

            # Both requests have read the interview at question 0.
            await second.get(Interview, interview_id)

            await candidate_interview.submit_answer(
                first, token, "I owned the 2.0 release end to end.", question_index=0
            )
            with pytest.raises(Conflict):
                await candidate_interview.submit_answer(
                    second, token, "A different answer to the same question.", question_index=0
                )

        async with race_db() as check:
            interview = await check.get(Interview, interview_id)
            assert interview.current_question_index == 1
            assert interview.responses[0]["answer"] == "I owned the 2.0 release end to end."


class TestConcurrentEvaluation:

    @pytest.mark.asyncio
    async def test_insert_race_keeps_one_evaluation(self, race_db):
        async with race_db() as session, race_db() as other:
            _, application = await _application(session)
            interview = Interview(
                application_id=application.id,
                status=InterviewStatus.COMPLETED,
                questions=QUESTIONS,
                total_questions=2,
                responses=[
                    {"question_index": i, "question": q, "answer": "We shipped it with tests."}
                    for i, q in enumerate(QUESTIONS)
                ],
            )
            session.add(interview)
            await session.commit()

            lookup = evaluations.get_evaluation_for_interview
            winner = {}

            async def lookup_then_lose_race(db, interview_id):
                if not winner:
                    row = Evaluation(
                        interview_id=interview_id,
                        application_id=application.id,
                        technical_score=70,
                        communication_score=70,
                        cultural_fit_score=70,
                        overall_score=70,
                        recommendation=Recommendation.HIRE_WITH_CONDITIONS,
                    )
                    other.add(row)
                    await other.commit()
                    winner["id"] = row.id
                    return None
                return await lookup(db, interview_id)

            with patch.object(evaluations, "get_evaluation_for_interview", side_effect=lookup_then_lose_race):
                result = await evaluations.ensure_evaluation(session, interview)

            assert result.id == winner["id"]

        async with race_db() as check:
            count = (await check.execute(select(func.count()).select_from(Evaluation))).scalar()
            assert count == 1
