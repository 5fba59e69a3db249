"""
Access tokens for candidate-facing endpoints.

Both token kinds are single-use and time-limited; ``used`` is flipped by a
conditional UPDATE so only one caller can ever consume a token.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    JSON,
    Float,
    Index,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from datetime import datetime
from typing import Any


class ScreeningToken(Base, TimestampMixin):
    """Grants one screening questionnaire submission for a candidate+job."""

    __tablename__ = "screening_tokens"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
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
    application_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("applications.id", ondelete="CASCADE")
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Outcome
    channel: Mapped[str | None] = mapped_column(String(20))  # form, email
    responses: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    qualification_rate: Mapped[float | None] = mapped_column(Float)
    qualified: Mapped[bool | None] = mapped_column(Boolean)
    notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    __table_args__ = (Index("idx_screening_token_candidate", "candidate_id", "used"),)


class InterviewToken(Base, TimestampMixin):
    """Gates the AI interview endpoints for one application."""

    __tablename__ = "interview_tokens"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    interview_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("interviews.id", ondelete="SET NULL")
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
