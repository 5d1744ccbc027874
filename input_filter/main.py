"""
Input Filter Service - FastAPI Application Entry Point.

Optional HTTP boundary around the InputFilter registry.
"""
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from input_filter import __version__
from input_filter.api.filter import get_input_filter, router as filter_router
from input_filter.api.health import router as health_router
from input_filter.core.config import get_settings
from input_filter.core.logging import get_safe_logger, setup_logging
from input_filter.core.metrics import get_metrics_collector
from input_filter.schemas.response import ErrorDetail, ErrorResponse, ResponseMetadata


# Initialize logging first
setup_logging()
logger = get_safe_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Builds the shared filter on startup so the first request does not pay for it.
    """
    input_filter = get_input_filter()
    logger.info("Starting Input Filter Service", rule_count=len(input_filter.rule_names()))

    yield

    logger.info("Shutting down Input Filter Service")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Input Filter Service",
        description="Type-driven sanitization of untrusted input values",
        version=__version__,
        docs_url="/docs" if settings.service_env == "dev" else None,
        redoc_url="/redoc" if settings.service_env == "dev" else None,
        openapi_url="/openapi.json" if settings.service_env == "dev" else None,
        lifespan=lifespan
    )

    # Register routes
    app.include_router(health_router)
    app.include_router(filter_router)

    # Register exception handlers
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID", str(uuid.uuid4()))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.
    Value-safe: validation details may quote the rejected input, so they are not returned.
    """
    request_id = _request_id(request)
    get_metrics_collector().record_error("BAD_REQUEST")

    logger.error(
        "Request validation failed",
        error_code="BAD_REQUEST",
        request_id=request_id,
        status_code=400
    )

    error_response = ErrorResponse(
        success=False,
        error=ErrorDetail(
            code="BAD_REQUEST",
            message="Invalid request format",
            retryable=False
        ),
        metadata=ResponseMetadata(requestId=request_id)
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response.model_dump(by_alias=True)
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions raised by routes."""
    request_id = _request_id(request)

    # Map status codes to error codes
    if exc.status_code == 400:
        error_code = "BAD_REQUEST"
    elif exc.status_code == 404:
        error_code = "NOT_FOUND"
    elif exc.status_code == 405:
        error_code = "METHOD_NOT_ALLOWED"
    elif exc.status_code == 413:
        error_code = "BATCH_TOO_LARGE"
    else:
        error_code = "INTERNAL_ERROR"

    logger.error(
        "HTTP exception",
        error_code=error_code,
        request_id=request_id,
        status_code=exc.status_code
    )

    error_response = ErrorResponse(
        success=False,
        error=ErrorDetail(
            code=error_code,
            message=exc.detail if isinstance(exc.detail, str) else "Request failed",
            retryable=exc.status_code >= 500
        ),
        metadata=ResponseMetadata(requestId=request_id)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(by_alias=True)
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions, e.g. a custom rule that raised.
    Value-safe: never log exception details.
    """
    request_id = _request_id(request)
    get_metrics_collector().record_error("INTERNAL_ERROR")

    logger.error(
        "Unexpected error",
        error_code="INTERNAL_ERROR",
        request_id=request_id,
        status_code=500,
        exception_class=type(exc).__name__
    )

    error_response = ErrorResponse(
        success=False,
        error=ErrorDetail(
            code="INTERNAL_ERROR",
            message="Internal server error",
            retryable=True
        ),
        metadata=ResponseMetadata(requestId=request_id)
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(by_alias=True)
    )


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "input_filter.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.service_env == "dev"
    )
