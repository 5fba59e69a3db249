"""Common Pydantic schemas shared across the API."""

from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=50, ge=1, le=200, description="Items per page")

    @property
    def offset(self) -> int:
        """Calculate offset from page and page_size."""
        return (self.page - 1) * self.page_size


class ErrorBody(BaseModel):
    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human readable message")
    path: str
    method: str
    details: Optional[Any] = Field(None, description="Field-level or contextual detail")


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    error: ErrorBody


class DeleteResponse(BaseModel):
    success: bool = True
    id: int


def strip_text(v: Any) -> Any:
    """Strip whitespace from string fields."""
    if isinstance(v, str):
        return v.strip()
    return v


class StrippedModel(BaseModel):
    """Base model that trims surrounding whitespace from every string field."""

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return strip_text(v)
