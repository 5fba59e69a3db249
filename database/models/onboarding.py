"""
Onboarding tasks created when an offer is accepted, or added by hand.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    BigInteger,
    DateTime,
    Enum as SQLEnum,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from datetime import datetime
from enum import Enum as PyEnum


class OnboardingTaskStatus(str, PyEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class OnboardingCategory(str, PyEnum):
    DOCUMENT = "document"
    SYSTEM_ACCESS = "system_access"
    MEETING = "meeting"
    TRAINING = "training"
    OTHER = "other"


class OnboardingTask(Base, TimestampMixin):
    """
    A single onboarding step. Tasks generated from an offer carry a
    ``template_key`` so the default batch can only exist once per offer.
    """

    __tablename__ = "onboarding_tasks"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    candidate_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_offer_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("job_offers.id", ondelete="CASCADE"), index=True
    )
    template_key: Mapped[str | None] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[OnboardingCategory] = mapped_column(
        SQLEnum(OnboardingCategory, native_enum=False, length=50),
        nullable=False,
        default=OnboardingCategory.OTHER,
    )
    status: Mapped[OnboardingTaskStatus] = mapped_column(
        SQLEnum(OnboardingTaskStatus, native_enum=False, length=50),
        nullable=False,
        default=OnboardingTaskStatus.PENDING,
    )
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    assigned_to: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        UniqueConstraint("job_offer_id", "template_key", name="uq_onboarding_offer_template"),
    )
