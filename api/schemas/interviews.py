"""Interview, round and question-config schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import StrippedModel
from database.models import InterviewStatus, InterviewType


class InterviewCreate(StrippedModel):
    """Schema for scheduling an interview."""

    application_id: int
    interview_type: InterviewType = InterviewType.BEHAVIORAL
    scheduled_at: Optional[datetime] = None
    duration_minutes: int = Field(default=60, ge=5, le=480)
    interviewer: Optional[str] = Field(None, max_length=255)
    meeting_link: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    round_id: Optional[int] = None
    questions: Optional[list[str]] = Field(None, description="Questions for an AI interview")


class InterviewUpdate(StrippedModel):
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=5, le=480)
    interviewer: Optional[str] = Field(None, max_length=255)
    meeting_link: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    status: Optional[InterviewStatus] = None


class AnswerSubmit(BaseModel):
    """A candidate's answer to the current question."""

    answer: str = Field(description="Transcribed or typed answer")
    duration: Optional[float] = Field(None, ge=0, description="Seconds spent answering")
    question_index: Optional[int] = Field(
        None, ge=0, description="Index the client believes it is answering; stale values are rejected"
    )


class RoundCreate(StrippedModel):
    job_id: int
    name: str = Field(min_length=1, max_length=255)
    round_number: Optional[int] = Field(None, ge=1, description="Defaults to the next free number")
    round_type: InterviewType = InterviewType.BEHAVIORAL
    duration_minutes: int = Field(default=60, ge=5, le=480)
    description: Optional[str] = None


class RoundUpdate(StrippedModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    round_number: Optional[int] = Field(None, ge=1)
    round_type: Optional[InterviewType] = None
    duration_minutes: Optional[int] = Field(None, ge=5, le=480)
    description: Optional[str] = None


class InterviewConfigUpdate(BaseModel):
    """Per-job AI interview question configuration."""

    total_questions: Optional[int] = Field(None, description="Between 1 and 50")
    custom_questions: Optional[list[str]] = None
    technical_questions: Optional[list[str]] = None
    behavioral_questions: Optional[list[str]] = None
    situational_questions: Optional[list[str]] = None
    passing_score: Optional[int] = Field(None, ge=0, le=100)
