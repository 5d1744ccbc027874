"""
Response schemas for the filter API.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class FilterResult(BaseModel):
    """A cleaned value and the normalized type used."""
    value: Any = Field(default=None, description="Cleaned value")
    filter_type: str = Field(..., alias="type", description="Normalized filter type")
    used_default: bool = Field(
        default=False,
        alias="usedDefault",
        description="True when no rule matched and the default rule ran"
    )

    class Config:
        populate_by_name = True


class ResponseMetadata(BaseModel):
    """Request metadata (never includes filtered values)."""
    request_id: str = Field(..., alias="requestId", description="Request correlation ID")
    filter_ms: float = Field(default=0.0, alias="filterMs", description="Time spent filtering")

    class Config:
        populate_by_name = True


class FilterResponse(BaseModel):
    """Successful single filter response."""
    success: bool = True
    data: FilterResult
    metadata: ResponseMetadata


class BatchFilterResponse(BaseModel):
    """Successful batch filter response."""
    success: bool = True
    data: list[FilterResult]
    metadata: ResponseMetadata


class ErrorDetail(BaseModel):
    """Error detail (value-safe)."""
    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Value-safe error message")
    retryable: bool = Field(default=False, description="Whether the client should retry")


class ErrorResponse(BaseModel):
    """Error envelope."""
    success: bool = False
    error: ErrorDetail
    metadata: Optional[ResponseMetadata] = None
