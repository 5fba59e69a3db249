"""
Offers Module

Job offers generated from hire decisions. One offer per application.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    Integer,
    Text,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from database.models.jobs import WorkType
from datetime import datetime
from enum import Enum as PyEnum


# ==================== Enums ===================== #
class OfferStatus(str, PyEnum):
    """Status of job offer."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


# ==================== JobOffer Model ===================== #
class JobOffer(Base, TimestampMixin):
    """
    Job offer with compensation and start date.
    """

    __tablename__ = "job_offers"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
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

    status: Mapped[OfferStatus] = mapped_column(
        SQLEnum(OfferStatus, native_enum=False, length=50),
        nullable=False,
        default=OfferStatus.PENDING,
        index=True,
    )

    # Terms
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(255))
    work_type: Mapped[WorkType] = mapped_column(
        SQLEnum(WorkType, native_enum=False, length=50),
        nullable=False,
        default=WorkType.ONSITE,
    )
    base_salary: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    # Response
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Notifications
    notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    onboarding_notification_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_by: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (Index("idx_offer_candidate_status", "candidate_id", "status"),)
