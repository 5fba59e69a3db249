"""
Evaluations Module

Exactly one evaluation per completed interview, enforced by a unique key.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    BigInteger,
    Float,
    JSON,
    Enum as SQLEnum,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from enum import Enum as PyEnum


class Recommendation(str, PyEnum):
    """Hiring recommendation produced by an evaluation."""

    HIRE = "hire"
    HIRE_WITH_CONDITIONS = "hire_with_conditions"
    NO_HIRE = "no_hire"
    NEEDS_FURTHER_EVALUATION = "needs_further_evaluation"


class Evaluation(Base, TimestampMixin):
    """Scored assessment of an interview."""

    __tablename__ = "evaluations"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    interview_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("interviews.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Scores (0-100)
    technical_score: Mapped[float] = mapped_column(Float, nullable=False)
    communication_score: Mapped[float] = mapped_column(Float, nullable=False)
    cultural_fit_score: Mapped[float] = mapped_column(Float, nullable=False)
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)

    recommendation: Mapped[Recommendation] = mapped_column(
        SQLEnum(Recommendation, native_enum=False, length=50), nullable=False
    )
    feedback: Mapped[str | None] = mapped_column(Text)
    strengths: Mapped[list[str] | None] = mapped_column(JSON)
    improvements: Mapped[list[str] | None] = mapped_column(JSON)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="rules")
