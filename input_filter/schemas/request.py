"""
Request schemas for the filter API.
Value note: ``value`` is untrusted input - NEVER log instances.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class FilterRequest(BaseModel):
    """A single value to filter."""

    value: Any = Field(
        default=None,
        description="Raw value to clean (any JSON value)"
    )
    filter_type: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=64,
        alias="type",
        description="Case-insensitive filter type; defaults to DEFAULT_FILTER_TYPE"
    )

    class Config:
        populate_by_name = True


class BatchFilterRequest(BaseModel):
    """Several values filtered independently, results in input order."""

    items: list[FilterRequest] = Field(
        ...,
        min_length=1,
        description="Values to filter"
    )
