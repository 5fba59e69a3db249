"""
Applications Module

One application links a candidate to a job and carries the pipeline status.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    BigInteger,
    Integer,
    Float,
    JSON,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from enum import Enum as PyEnum
from typing import Any


# ==================== Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Pipeline position of an application."""

    APPLIED = "applied"
    SCREENING_SENT = "screening_sent"
    SCREENED = "screened"
    INTERVIEW_INVITED = "interview_invited"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"
    REJECTED = "rejected"
    HIRED = "hired"


# ==================== Application Model ===================== #
class Application(Base, TimestampMixin):
    """
    Candidate application for a job.
    """

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    candidate_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50),
        nullable=False,
        default=ApplicationStatus.APPLIED,
        index=True,
    )
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    source: Mapped[str | None] = mapped_column(String(50))  # manual, drive, bulk

    # Matching
    match_score: Mapped[float | None] = mapped_column(Float)
    skills_match: Mapped[float | None] = mapped_column(Float)
    experience_match: Mapped[float | None] = mapped_column(Float)
    match_details: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    candidate: Mapped["Candidate"] = relationship(
        "Candidate", back_populates="applications"
    )

    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_application_candidate_job"),
        Index("idx_application_job_status", "job_id", "status"),
    )
