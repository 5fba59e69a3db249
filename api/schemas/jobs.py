"""Job-related Pydantic schemas."""

from typing import Optional
from pydantic import Field

from api.schemas.common import StrippedModel
from database.models import JobStatus, WorkType


class JobCreate(StrippedModel):
    """Schema for creating a job."""

    title: str = Field(min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    description: str = Field(default="", description="Role description shown to candidates")
    requirements: Optional[str] = Field(None, description="Requirements text used for screening and matching")
    experience_level: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    work_type: WorkType = WorkType.ONSITE
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=10)
    status: JobStatus = JobStatus.ACTIVE


class JobUpdate(StrippedModel):
    """Schema for updating a job. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    requirements: Optional[str] = None
    experience_level: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    work_type: Optional[WorkType] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    status: Optional[JobStatus] = None
