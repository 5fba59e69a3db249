"""Candidate and application Pydantic schemas."""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from api.schemas.common import StrippedModel
from database.models import ApplicationStatus


class CandidateCreate(StrippedModel):
    """Schema for creating a candidate."""

    name: str = Field(min_length=1, max_length=255, description="Candidate's full name")
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50, description="Contact phone number")
    location: Optional[str] = Field(None, max_length=255, description="Geographic location")
    linkedin_url: Optional[str] = Field(None, max_length=500, description="LinkedIn profile URL")
    skills: Optional[list[str]] = None
    experience_years: Optional[float] = Field(None, ge=0, le=60)
    summary: Optional[str] = None
    resume_text: Optional[str] = Field(None, description="Plain-text resume, if already extracted")


class CandidateUpdate(StrippedModel):
    """Schema for updating a candidate."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    linkedin_url: Optional[str] = Field(None, max_length=500)
    skills: Optional[list[str]] = None
    experience_years: Optional[float] = Field(None, ge=0, le=60)
    summary: Optional[str] = None


class SendScreeningRequest(BaseModel):
    candidate_id: int
    job_id: int


class ApplicationCreate(BaseModel):
    candidate_id: int
    job_id: int
    source: Optional[str] = Field(default="manual", max_length=50)


class ApplicationUpdate(BaseModel):
    """Status changes go through the application state machine."""

    status: Optional[ApplicationStatus] = None
    current_round: Optional[int] = Field(None, ge=1)


class BulkFileSelection(BaseModel):
    """Processed files of a bulk job picked by the recruiter."""

    file_ids: list[int] = Field(min_length=1, max_length=100)
