"""Shared column mixins."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from core.utils.datetime import isoformat, now


class TimestampMixin:
    """created_at / updated_at columns populated on the Python side as well,
    so values are available after flush without a refresh round-trip."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        onupdate=now,
        server_default=func.now(),
    )

    def to_dict(self, exclude: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Converts the row to a JSON-ready dictionary.

        Args:
            exclude (Iterable[str]): Column names to leave out.
        Returns:
            Dict[str, Any]: Column values with enums as their values and
            datetimes as ISO-8601 strings.
        """
        skipped = set(exclude)
        data: Dict[str, Any] = {}
        for column in self.__table__.columns:
            if column.name in skipped:
                continue
            value = getattr(self, column.key)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = isoformat(value)
            data[column.name] = value
        return data
