"""Screening form schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from core.workflow.screening import ScreeningAnswers


class ScreeningAnswer(BaseModel):
    question: str
    answer: str = ""


class ScreeningSubmission(BaseModel):
    """Structured answers from the candidate-facing screening form."""

    years_of_experience: Optional[float] = Field(None, ge=0, le=60)
    expected_salary_lpa: Optional[float] = Field(None, ge=0, description="Expected salary in lakhs per annum")
    current_ctc_lpa: Optional[float] = Field(None, ge=0, description="Current CTC in lakhs per annum")
    notice_period_days: Optional[int] = Field(None, ge=0, le=365)
    willing_to_relocate: Optional[bool] = None
    skills: Optional[list[str]] = None
    answers: list[ScreeningAnswer] = Field(default_factory=list)
    comments: Optional[str] = Field(None, max_length=5000)

    def to_answers(self) -> ScreeningAnswers:
        return ScreeningAnswers.from_form(
            years_of_experience=self.years_of_experience,
            expected_salary_lpa=self.expected_salary_lpa,
            current_ctc_lpa=self.current_ctc_lpa,
            notice_period_days=self.notice_period_days,
            willing_to_relocate=self.willing_to_relocate,
            skills=self.skills,
            answers=[a.model_dump() for a in self.answers],
            comments=self.comments,
        )
