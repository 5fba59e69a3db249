"""
Recruitment drives

Campus-style hiring events: registration, an aptitude round, a technical
round and finally an AI interview for the candidates who clear both cutoffs.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Text,
    Boolean,
    ForeignKey,
    BigInteger,
    Integer,
    Float,
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
class DriveStatus(str, PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class RegistrationStatus(str, PyEnum):
    PENDING = "pending"
    REGISTERED = "registered"


class DriveCandidateStatus(str, PyEnum):
    """Furthest step a drive candidate has reached."""

    INVITED = "invited"
    REGISTERED = "registered"
    APTITUDE_COMPLETED = "aptitude_completed"
    TECHNICAL_COMPLETED = "technical_completed"
    INTERVIEW_SCHEDULED = "interview_scheduled"


class QualificationStatus(str, PyEnum):
    PENDING = "pending"
    QUALIFIED = "qualified"
    NOT_QUALIFIED = "not_qualified"


class TestSessionStatus(str, PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


# ==================== DriveSession Model ===================== #
class DriveSession(Base, TimestampMixin):
    """A recruitment drive with its round cutoffs."""

    __tablename__ = "drive_sessions"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    job_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("jobs.id", ondelete="SET NULL"), index=True
    )
    aptitude_cutoff: Mapped[float] = mapped_column(Float, nullable=False, default=60)
    technical_cutoff: Mapped[float] = mapped_column(Float, nullable=False, default=70)
    question_count: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    test_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=60
    )
    status: Mapped[DriveStatus] = mapped_column(
        SQLEnum(DriveStatus, native_enum=False, length=50),
        nullable=False,
        default=DriveStatus.ACTIVE,
    )
    created_by: Mapped[str | None] = mapped_column(String(255))

    def cutoff_for_round(self, test_round: int) -> float:
        return self.aptitude_cutoff if test_round == 1 else self.technical_cutoff


# ==================== DriveCandidate Model ===================== #
class DriveCandidate(Base, TimestampMixin):
    """Candidate enrolled in a drive, with the scores that drive advancement."""

    __tablename__ = "drive_candidates"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    drive_session_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("drive_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))

    # Registration
    registration_token: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True
    )
    registration_expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    registration_status: Mapped[RegistrationStatus] = mapped_column(
        SQLEnum(RegistrationStatus, native_enum=False, length=50),
        nullable=False,
        default=RegistrationStatus.PENDING,
    )
    registered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Progress
    status: Mapped[DriveCandidateStatus] = mapped_column(
        SQLEnum(DriveCandidateStatus, native_enum=False, length=50),
        nullable=False,
        default=DriveCandidateStatus.INVITED,
    )
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    aptitude_score: Mapped[float | None] = mapped_column(Float)
    technical_score: Mapped[float | None] = mapped_column(Float)
    qualification_status: Mapped[QualificationStatus] = mapped_column(
        SQLEnum(QualificationStatus, native_enum=False, length=50),
        nullable=False,
        default=QualificationStatus.PENDING,
        index=True,
    )
    interview_scheduled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    application_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("applications.id", ondelete="SET NULL")
    )
    notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    __table_args__ = (
        UniqueConstraint("drive_session_id", "email", name="uq_drive_candidate_email"),
    )


# ==================== AptitudeQuestion Model ===================== #
class AptitudeQuestion(Base, TimestampMixin):
    """Multiple-choice question used by drive tests."""

    __tablename__ = "aptitude_questions"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    correct_answer: Mapped[str] = mapped_column(String(500), nullable=False)
    test_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    category: Mapped[str | None] = mapped_column(String(100))
    difficulty: Mapped[str | None] = mapped_column(String(20))


# ==================== TestSession Model ===================== #
class TestSession(Base, TimestampMixin):
    """One sitting of a drive test, reachable through ``test_token``."""

    __tablename__ = "test_sessions"
    __test__ = False  # not a pytest test class

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    drive_candidate_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("drive_candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    test_token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    test_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    question_ids: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    responses: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    score: Mapped[float | None] = mapped_column(Float)
    status: Mapped[TestSessionStatus] = mapped_column(
        SQLEnum(TestSessionStatus, native_enum=False, length=50),
        nullable=False,
        default=TestSessionStatus.PENDING,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    __table_args__ = (Index("idx_test_session_candidate_round", "drive_candidate_id", "test_round"),)
