"""
Bulk resume processing jobs.

Progress is derived from the per-file rows, which Celery workers update
independently of each other.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    Boolean,
    String,
    Text,
    ForeignKey,
    BigInteger,
    Float,
    Enum as SQLEnum,
)
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from enum import Enum as PyEnum


class BulkFileStatus(str, PyEnum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class BulkJob(Base, TimestampMixin):
    __tablename__ = "bulk_jobs"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    job_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[str | None] = mapped_column(String(255))


class BulkJobFile(Base, TimestampMixin):
    __tablename__ = "bulk_job_files"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    bulk_job_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("bulk_jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    stored_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    status: Mapped[BulkFileStatus] = mapped_column(
        SQLEnum(BulkFileStatus, native_enum=False, length=50),
        nullable=False,
        default=BulkFileStatus.QUEUED,
    )
    detected_type: Mapped[str | None] = mapped_column(String(10))
    candidate_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("candidates.id", ondelete="SET NULL")
    )
    application_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("applications.id", ondelete="SET NULL")
    )
    match_score: Mapped[float | None] = mapped_column(Float)
    error: Mapped[str | None] = mapped_column(Text)
    shortlisted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
