"""
Health check and metrics endpoints.
Value-safe: no filtered data in responses.
"""
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from input_filter import __version__
from input_filter.api.filter import get_input_filter
from input_filter.core.metrics import get_metrics_collector
from input_filter.services.input_filter import InputFilter

router = APIRouter(tags=["health"])


# === Response Models ===

class HealthResponse(BaseModel):
    """Basic health check response."""
    ok: bool


class DetailedHealthResponse(BaseModel):
    """Detailed health response for /v1/health."""
    ok: bool
    service: str = Field(default="input-filter")
    version: str
    rules: List[str]
    allowed_tags: int = Field(alias="allowedTags")

    class Config:
        populate_by_name = True


class MetricsResponse(BaseModel):
    """Metrics response."""
    uptime_seconds: int = Field(alias="uptimeSeconds")
    total_requests: int = Field(alias="totalRequests")
    success_count: int = Field(alias="successCount")
    error_count: int = Field(alias="errorCount")
    error_codes: Dict[str, int] = Field(alias="errorCodes")
    latency: Dict[str, Any]
    filter_types: Dict[str, int] = Field(alias="filterTypes")
    default_fallbacks: int = Field(alias="defaultFallbacks")
    unmatched_results: int = Field(alias="unmatchedResults")

    class Config:
        populate_by_name = True


# === Endpoints ===

@router.get(
    "/healthz",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Returns 200 if the service is alive"
)
async def health_check() -> HealthResponse:
    """Liveness probe. Simply returns ok=true if the service is running."""
    return HealthResponse(ok=True)


@router.get(
    "/v1/health",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
    description="Returns service version and the registered filter rules"
)
async def detailed_health_check(
    input_filter: Annotated[InputFilter, Depends(get_input_filter)],
) -> DetailedHealthResponse:
    return DetailedHealthResponse(
        ok=True,
        version=__version__,
        rules=input_filter.rule_names(),
        allowed_tags=len(input_filter.get_html_cleaner().allowed_tags),
    )


@router.get(
    "/v1/metrics",
    response_model=MetricsResponse,
    status_code=status.HTTP_200_OK,
    summary="Service metrics",
    description="Returns aggregated filter metrics (value-safe)"
)
async def get_metrics() -> MetricsResponse:
    """
    Get aggregated metrics.

    Value-safe: only counters and latency sums, never filtered values.
    """
    snapshot = get_metrics_collector().get_snapshot()
    return MetricsResponse(
        uptime_seconds=snapshot["uptime_seconds"],
        total_requests=snapshot["total_requests"],
        success_count=snapshot["success_count"],
        error_count=snapshot["error_count"],
        error_codes=snapshot["error_codes"],
        latency=snapshot["latency"],
        filter_types=snapshot["filter_types"],
        default_fallbacks=snapshot["default_fallbacks"],
        unmatched_results=snapshot["unmatched_results"],
    )
