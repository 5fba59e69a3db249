"""
Interviews Module

Interview rounds per job, interview sessions and per-job question configuration.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Text,
    Boolean,
    ForeignKey,
    BigInteger,
    Integer,
    DateTime,
    JSON,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== Enums ===================== #
class InterviewType(str, PyEnum):
    """Format of the interview."""

    AI_VIDEO = "ai_video"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    HR = "hr"
    PANEL = "panel"


class InterviewStatus(str, PyEnum):
    """Lifecycle of an interview session."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ==================== InterviewRound Model ===================== #
class InterviewRound(Base, TimestampMixin):
    """A numbered round in a job's interview process."""

    __tablename__ = "interview_rounds"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    job_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    round_type: Mapped[InterviewType] = mapped_column(
        SQLEnum(InterviewType, native_enum=False, length=50),
        nullable=False,
        default=InterviewType.BEHAVIORAL,
    )
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    description: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("job_id", "round_number", name="uq_interview_round_number"),
    )


# ==================== Interview Model ===================== #
class Interview(Base, TimestampMixin):
    """
    Interview session. ``responses`` is the only record of progress: the
    current question index and the status are always derived from it.
    """

    __tablename__ = "interviews"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    round_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("interview_rounds.id", ondelete="SET NULL")
    )
    interview_type: Mapped[InterviewType] = mapped_column(
        SQLEnum(InterviewType, native_enum=False, length=50),
        nullable=False,
        default=InterviewType.AI_VIDEO,
    )
    status: Mapped[InterviewStatus] = mapped_column(
        SQLEnum(InterviewStatus, native_enum=False, length=50),
        nullable=False,
        default=InterviewStatus.SCHEDULED,
        index=True,
    )
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    # Question/answer loop
    questions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    responses: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    interviewer: Mapped[str | None] = mapped_column(String(255))
    meeting_link: Mapped[str | None] = mapped_column(String(500))
    notes: Mapped[str | None] = mapped_column(Text)
    notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (Index("idx_interview_app_status", "application_id", "status"),)

    @property
    def current_question_index(self) -> int:
        return len(self.responses or [])

    @property
    def current_question(self) -> str | None:
        index = self.current_question_index
        if index < len(self.questions or []):
            return self.questions[index]
        return None


# ==================== InterviewConfig Model ===================== #
class InterviewConfig(Base, TimestampMixin):
    """Per-job question configuration for AI interviews."""

    __tablename__ = "interview_configs"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    job_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    custom_questions: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    technical_questions: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    behavioral_questions: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    situational_questions: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)

    def configured_questions(self) -> list[str]:
        """Questions in asking order: custom first, then by category."""
        ordered: list[str] = []
        for group in (
            self.custom_questions,
            self.technical_questions,
            self.behavioral_questions,
            self.situational_questions,
        ):
            for question in group or []:
                if question and question.strip() and question not in ordered:
                    ordered.append(question.strip())
        return ordered
