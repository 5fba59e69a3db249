"""
Decision matrix: the single hiring decision recorded per application.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    BigInteger,
    DateTime,
    Enum as SQLEnum,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from datetime import datetime
from enum import Enum as PyEnum


class DecisionType(str, PyEnum):
    PENDING = "pending"
    PROCEED = "proceed"
    HIRE = "hire"
    REJECT = "reject"
    HOLD = "hold"


class DecisionMatrix(Base, TimestampMixin):
    __tablename__ = "decision_matrix"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    decision: Mapped[DecisionType] = mapped_column(
        SQLEnum(DecisionType, native_enum=False, length=50),
        nullable=False,
        default=DecisionType.PENDING,
    )
    next_round: Mapped[str | None] = mapped_column(String(255))
    next_round_number: Mapped[int | None] = mapped_column(BigInteger)
    notes: Mapped[str | None] = mapped_column(Text)
    decided_by: Mapped[str | None] = mapped_column(String(255))
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
