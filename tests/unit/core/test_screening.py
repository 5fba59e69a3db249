"""
Tests for the screening qualification policy.
"""

import pytest
from types import SimpleNamespace

from core.workflow.screening import (
    JobCriteria,
    ScreeningAnswers,
    WeightedCriteriaEvaluator,
    evaluate_screening,
    parse_screening_answers,
    strip_quoted_reply,
)


def _job(description: str, requirements: str = "", work_type: str = "remote"):
    return SimpleNamespace(
        criteria_text=f"{description} {requirements}".lower(),
        work_type=work_type,
    )


BACKEND_JOB = _job(
    "Platform engineer. 3+ years experience required. "
    "Please share your salary expectations and notice period."
)


class TestJobCriteria:
    """Criteria derived from job text."""

    def test_salary_experience_and_notice(self):
        criteria = JobCriteria.from_job(BACKEND_JOB)

        assert criteria.requires_salary_info
        assert criteria.requires_experience
        assert criteria.min_experience == 3
        assert criteria.requires_notice_period
        assert not criteria.requires_relocation
        assert criteria.count == 3

    def test_onsite_without_local_requires_relocation(self):
        criteria = JobCriteria.from_text("office role in pune", work_type="onsite")
        assert criteria.requires_relocation

    def test_salary_band_in_lakhs(self):
        criteria = JobCriteria.from_text("ctc 10 lpa to 15 lpa")
        assert criteria.salary_range == (10.0, 15.0)

    def test_skills_use_word_boundaries(self):
        criteria = JobCriteria.from_text("maintain our java services; email campaigns")
        assert criteria.skills == ("java",)


class TestScreeningScenarios:
    """End-to-end scoring of representative replies."""

    def test_complete_reply_qualifies(self):
        answers = ScreeningAnswers.from_text(
            "Yes, I have 5 years experience and current CTC is 8 LPA, available immediately"
        )
        result = evaluate_screening(answers, BACKEND_JOB)

        assert result.qualified
        assert result.path == "criteria"
        assert result.criteria_count == 3
        assert result.breakdown["salary"] == 1.0
        assert result.breakdown["experience"] == 1.0
        assert result.breakdown["notice_period"] == 1.0
        assert result.breakdown["engagement"] == 0.5

    def test_vague_reply_without_job_uses_generic_rule(self):
        result = evaluate_screening(ScreeningAnswers.from_text("not sure"), None)

        assert not result.qualified
        assert result.path == "generic"

    def test_vague_reply_against_criteria_fails(self):
        result = evaluate_screening(ScreeningAnswers.from_text("not sure"), BACKEND_JOB)
        assert not result.qualified
        assert result.rate == 0.0

    def test_empty_reply(self):
        result = evaluate_screening(ScreeningAnswers.from_text("   "), BACKEND_JOB)
        assert result.path == "empty"
        assert not result.qualified

    def test_generic_rule_accepts_engaged_reply_without_job(self):
        answers = ScreeningAnswers.from_text("Yes, I am very interested in this opportunity")
        result = evaluate_screening(answers, None)

        assert result.path == "generic"
        assert result.qualified

    def test_job_without_criteria_disqualifies(self):
        answers = ScreeningAnswers.from_text("Yes, I am interested in this role")
        result = evaluate_screening(answers, _job("Join our team."))

        assert result.path == "no_criteria"
        assert result.criteria_count == 0
        assert result.rate == 0.0
        assert not result.qualified

    def test_scoring_is_deterministic(self):
        text = "I have 2 years of experience, expecting 6 lpa, 30 days notice"
        first = evaluate_screening(ScreeningAnswers.from_text(text), BACKEND_JOB)
        second = evaluate_screening(ScreeningAnswers.from_text(text), BACKEND_JOB)
        assert first.to_dict() == second.to_dict()


class TestPartialCredit:
    """Buffered matches score half."""

    def test_experience_within_eighty_percent(self):
        criteria = JobCriteria(requires_experience=True, min_experience=5)
        answers = ScreeningAnswers(text="ok", experience_years=4)
        result = WeightedCriteriaEvaluator(threshold=0.6).evaluate(answers, criteria)
        assert result.breakdown["experience"] == 0.5

    def test_salary_above_band_buffer(self):
        criteria = JobCriteria(requires_salary_info=True, salary_range=(10, 12))
        answers = ScreeningAnswers(text="ctc", salary_disclosed=True, salary_lakhs=30)
        result = WeightedCriteriaEvaluator(threshold=0.6).evaluate(answers, criteria)
        assert result.breakdown["salary"] == 0.5

    def test_threshold_is_configurable(self):
        criteria = JobCriteria(requires_experience=True, min_experience=5, requires_notice_period=True)
        answers = ScreeningAnswers(text="ok", experience_years=5)
        assert WeightedCriteriaEvaluator(threshold=0.5).evaluate(answers, criteria).qualified
        assert not WeightedCriteriaEvaluator(threshold=0.6).evaluate(answers, criteria).qualified


class TestFormAnswers:
    """Structured form adapter."""

    def test_from_form_fills_structured_fields(self):
        answers = ScreeningAnswers.from_form(
            years_of_experience=4,
            expected_salary_lpa=12,
            notice_period_days=30,
            willing_to_relocate=True,
            skills=["Python", "SQL"],
        )

        assert answers.experience_years == 4
        assert answers.salary_lakhs == 12
        assert answers.notice_disclosed
        assert answers.relocation_ok is True
        assert answers.mentions_skill("python")

    def test_relocation_refusal_detected_in_text(self):
        answers = ScreeningAnswers.from_text("I am not willing to relocate")
        assert answers.relocation_ok is False


class TestReplyParsing:
    """Email body helpers."""

    def test_strip_quoted_reply(self):
        body = "1. Five years\n2. 30 days\n\nOn Mon, 3 Jun 2024, Hiring <jobs@acme.io> wrote:\n> questions"
        assert strip_quoted_reply(body) == "1. Five years\n2. 30 days"

    def test_numbered_answers(self):
        parsed = parse_screening_answers("1. Five years\n2) 30 days")
        assert parsed == [
            {"question": "Question 1", "answer": "Five years"},
            {"question": "Question 2", "answer": "30 days"},
        ]

    @pytest.mark.parametrize("text", ["Q: Experience?\nA: 5 years", "q1. Experience?\na1: 5 years"])
    def test_question_answer_pairs(self, text):
        parsed = parse_screening_answers(text)
        assert parsed[0]["answer"] == "5 years"
