"""
Filter API endpoints.
Value-safe: request values and cleaned results are never logged.
"""
import time
import uuid
from functools import lru_cache
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from input_filter.core.config import get_settings
from input_filter.core.logging import get_safe_logger
from input_filter.core.metrics import get_metrics_collector
from input_filter.schemas.request import BatchFilterRequest, FilterRequest
from input_filter.schemas.response import (
    BatchFilterResponse,
    ErrorResponse,
    FilterResponse,
    FilterResult,
    ResponseMetadata,
)
from input_filter.services.input_filter import InputFilter

router = APIRouter(prefix="/v1", tags=["filter"])
logger = get_safe_logger(__name__)


@lru_cache()
def get_input_filter() -> InputFilter:
    """Process-wide filter with built-in rules. Override in tests via dependency_overrides."""
    return InputFilter()


def get_request_id(
    x_request_id: Annotated[str | None, Header(alias="X-Request-ID")] = None
) -> str:
    """
    Get or generate request ID from header.
    """
    if x_request_id and len(x_request_id) <= 100:
        return x_request_id
    return str(uuid.uuid4())


def _filter_one(input_filter: InputFilter, value: Any, filter_type: Optional[str]) -> FilterResult:
    name = (filter_type or get_settings().default_filter_type).strip().upper()
    used_default = not input_filter.has_rule(name)

    start = time.perf_counter()
    cleaned = input_filter.clean(value, name)
    elapsed_ms = (time.perf_counter() - start) * 1000

    get_metrics_collector().record_filter(
        name,
        latency_ms=elapsed_ms,
        used_default=used_default,
        unmatched=cleaned is None,
    )
    return FilterResult(value=cleaned, filter_type=name, used_default=used_default)


@router.post(
    "/filter",
    response_model=FilterResponse,
    status_code=status.HTTP_200_OK,
    summary="Clean a single value",
    description="Applies the named filter rule (or the default rule) to one value",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
)
def filter_value(
    request_body: FilterRequest,
    request_id: Annotated[str, Depends(get_request_id)],
    input_filter: Annotated[InputFilter, Depends(get_input_filter)],
) -> FilterResponse:
    """
    Clean one value.

    Value Safety:
    - request_body.value is untrusted and is NEVER logged
    - Only requestId, filter type, latency and status are logged
    """
    start_time = time.perf_counter()
    result = _filter_one(input_filter, request_body.value, request_body.filter_type)
    latency_ms = round((time.perf_counter() - start_time) * 1000, 3)

    logger.info(
        "Filter request completed",
        request_id=request_id,
        filter_type=result.filter_type,
        latency_ms=latency_ms,
        status="success",
    )

    return FilterResponse(
        data=result,
        metadata=ResponseMetadata(request_id=request_id, filter_ms=latency_ms),
    )


@router.post(
    "/filter/batch",
    response_model=BatchFilterResponse,
    status_code=status.HTTP_200_OK,
    summary="Clean several values",
    description="Filters each item independently; results keep input order",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        413: {"model": ErrorResponse, "description": "Too many items"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
)
def filter_batch(
    request_body: BatchFilterRequest,
    request_id: Annotated[str, Depends(get_request_id)],
    input_filter: Annotated[InputFilter, Depends(get_input_filter)],
) -> BatchFilterResponse:
    """Clean several values in one request."""
    settings = get_settings()
    if len(request_body.items) > settings.max_batch_items:
        get_metrics_collector().record_error("BATCH_TOO_LARGE")
        logger.warning(
            "Batch rejected",
            request_id=request_id,
            item_count=len(request_body.items),
            error_code="BATCH_TOO_LARGE",
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Batch exceeds {settings.max_batch_items} items",
        )

    start_time = time.perf_counter()
    results = [
        _filter_one(input_filter, item.value, item.filter_type)
        for item in request_body.items
    ]
    latency_ms = round((time.perf_counter() - start_time) * 1000, 3)

    logger.info(
        "Batch filter request completed",
        request_id=request_id,
        item_count=len(results),
        latency_ms=latency_ms,
        status="success",
    )

    return BatchFilterResponse(
        data=results,
        metadata=ResponseMetadata(request_id=request_id, filter_ms=latency_ms),
    )
