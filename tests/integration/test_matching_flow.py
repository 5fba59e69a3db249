"""Scoring an application's resume against its job."""

import pytest

from api.services.applications import calculate_match
from core.exceptions import NotFound
from database.models import Application, Candidate, Job
from tests.conftest import make_llm_client


async def _application(session):
    job = Job(
        title="Data Engineer",
        description="Build pipelines in Python and SQL on AWS.",
        requirements="3 years of experience.",
    )
    candidate = Candidate(
        name="Rohan Gupta",
        email="rohan@acme.io",
        resume_text="Data engineer, 5 years with Python and Airflow.",
        skills=["SQL"],
        experience_years=5,
    )
    session.add_all([job, candidate])
    await session.flush()
    application = Application(candidate_id=candidate.id, job_id=job.id)
    session.add(application)
    await session.commit()
    return application


class TestCalculateMatch:

    @pytest.mark.asyncio
    async def test_model_score_is_stored(self, session):
        application = await _application(session)
        client = make_llm_client({
            "match_score": 82,
            "skills_match": 75,
            "experience_match": 100,
            "matched_skills": ["python", "sql"],
            "missing_skills": ["aws"],
            "analysis": "Solid pipeline background.",
        })

        result = await calculate_match(session, application.id, llm_client=client)

        assert result["source"] == "llm"
        assert result["match_score"] == 82.0
        await session.refresh(application)
        assert application.match_score == 82.0
        assert application.match_details["analysis"] == "Solid pipeline background."
        client.aio.models.generate_content.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_keyword_overlap_without_model(self, session):
        application = await _application(session)

        result = await calculate_match(session, application.id)

        assert result["source"] == "rules"
        assert result["matched_skills"] == ["python", "sql"]
        assert result["missing_skills"] == ["aws"]
        await session.refresh(application)
        assert application.skills_match == result["skills_match"]

    @pytest.mark.asyncio
    async def test_unknown_application(self, session):
        with pytest.raises(NotFound):
            await calculate_match(session, 404)
