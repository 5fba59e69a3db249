"""
Jobs Module

Job postings. Read-only input to screening, matching and offer generation.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Enum as SQLEnum, Index
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from enum import Enum as PyEnum


# ==================== Enums ===================== #
class WorkType(str, PyEnum):
    """Where the role is performed."""

    ONSITE = "onsite"
    REMOTE = "remote"
    HYBRID = "hybrid"


class JobStatus(str, PyEnum):
    """Publication status of a job."""

    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


# ==================== Job Model ===================== #
class Job(Base, TimestampMixin):
    """
    Job posting with the free-text requirements used by screening.
    """

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    requirements: Mapped[str | None] = mapped_column(Text)
    experience_level: Mapped[str | None] = mapped_column(String(50))
    location: Mapped[str | None] = mapped_column(String(255))
    work_type: Mapped[WorkType] = mapped_column(
        SQLEnum(WorkType, native_enum=False, length=50),
        nullable=False,
        default=WorkType.ONSITE,
    )

    # Salary band
    salary_min: Mapped[int | None] = mapped_column(Integer)
    salary_max: Mapped[int | None] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")

    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=50),
        nullable=False,
        default=JobStatus.ACTIVE,
        index=True,
    )
    created_by: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (Index("idx_job_title", "title"),)

    @property
    def criteria_text(self) -> str:
        """Description and requirements as one lower-cased blob for keyword checks."""
        return f"{self.description or ''} {self.requirements or ''}".lower()
