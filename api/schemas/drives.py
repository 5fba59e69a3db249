"""Recruitment drive schemas."""

from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from api.schemas.common import StrippedModel


class DriveCandidateIn(StrippedModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    phone: Optional[str] = Field(None, max_length=50)


class DriveCreate(StrippedModel):
    """A drive with its initial candidate list. Invalid rows are skipped, not rejected."""

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    job_id: Optional[int] = None
    aptitude_cutoff: float = Field(default=60, ge=0, le=100)
    technical_cutoff: float = Field(default=70, ge=0, le=100)
    question_count: int = Field(default=50, ge=1, le=200)
    test_duration_minutes: int = Field(default=60, ge=5, le=480)
    candidates: list[DriveCandidateIn] = Field(default_factory=list)


class CutoffUpdate(BaseModel):
    aptitude_cutoff: Optional[float] = None
    technical_cutoff: Optional[float] = None

    @model_validator(mode="after")
    def require_one(self) -> "CutoffUpdate":
        if self.aptitude_cutoff is None and self.technical_cutoff is None:
            raise ValueError("Provide aptitude_cutoff or technical_cutoff")
        return self


class RegistrationSubmit(StrippedModel):
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class TestSubmission(BaseModel):
    """Chosen option per question id."""

    __test__ = False

    answers: dict[str, str] = Field(default_factory=dict)


class QuestionCreate(StrippedModel):
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_answer: str = Field(min_length=1)
    test_round: int = Field(default=1, ge=1, le=2)
    category: Optional[str] = Field(None, max_length=100)
    difficulty: Optional[str] = Field(None, max_length=20)


class QuestionUpdate(StrippedModel):
    question: Optional[str] = Field(None, min_length=1)
    options: Optional[list[str]] = Field(None, min_length=2)
    correct_answer: Optional[str] = Field(None, min_length=1)
    test_round: Optional[int] = Field(None, ge=1, le=2)
    category: Optional[str] = Field(None, max_length=100)
    difficulty: Optional[str] = Field(None, max_length=20)


class QuestionGenerate(StrippedModel):
    """Ask for generated questions; round 2 questions are tailored to ``job_id``."""

    test_round: int = Field(default=1, ge=1, le=2)
    count: int = Field(default=5, ge=1, le=20)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    category: Optional[str] = Field(None, max_length=100)
    job_id: Optional[int] = None
    topics: list[str] = Field(default_factory=list, max_length=20)
