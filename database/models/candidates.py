"""
Candidates Module

Candidate profiles and parsed resume content.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from sqlalchemy import Boolean, DateTime, String, Text, Float, JSON
from database.engine import Base, BigIntPK
from database.models.mixins import TimestampMixin
from typing import Any


class Candidate(Base, TimestampMixin):
    """
    A person in the hiring pipeline.

    Deleting a candidate removes everything hanging off it through
    ON DELETE CASCADE foreign keys.
    """

    __tablename__ = "candidates"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True
    )
    phone: Mapped[str | None] = mapped_column(String(50))
    location: Mapped[str | None] = mapped_column(String(255))
    linkedin_url: Mapped[str | None] = mapped_column(String(500))

    # Resume
    resume_text: Mapped[str | None] = mapped_column(Text)
    resume_file_name: Mapped[str | None] = mapped_column(String(255))
    resume_file_type: Mapped[str | None] = mapped_column(String(10))

    skills: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    experience_years: Mapped[float | None] = mapped_column(Float)
    summary: Mapped[str | None] = mapped_column(Text)
    extra: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Archived candidates are hidden from the default listing
    archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="candidate", passive_deletes=True
    )
