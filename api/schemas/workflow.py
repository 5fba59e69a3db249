"""Decision, offer and onboarding schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import StrippedModel
from database.models import DecisionType, OfferStatus, OnboardingCategory, OnboardingTaskStatus


class DecisionCreate(StrippedModel):
    """
    Record the decision for an application.

    ``next_round`` names the round to schedule and is required for ``proceed``.
    """

    application_id: int
    decision: DecisionType
    next_round: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class OfferCreate(StrippedModel):
    application_id: int
    base_salary: Optional[int] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    notes: Optional[str] = None


class OfferUpdate(StrippedModel):
    status: Optional[OfferStatus] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    base_salary: Optional[int] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None


class OnboardingTaskCreate(StrippedModel):
    candidate_id: int
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: OnboardingCategory = OnboardingCategory.OTHER
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    job_offer_id: Optional[int] = None


class OnboardingTaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[OnboardingCategory] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    status: Optional[OnboardingTaskStatus] = None
