"""
Value-safe logging module.
CRITICAL: Never log the values being filtered. They are untrusted input.
Only log: filter type, rule kind, iteration counts, requestId, status.
"""
import logging
import sys
from typing import Any, Optional

from input_filter.core.config import get_settings


def setup_logging() -> None:
    """Configure application logging with a value-safe format."""
    settings = get_settings()

    # Determine log level based on environment
    log_level = logging.DEBUG if settings.service_env == "dev" else logging.INFO

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


class SafeLogger:
    """
    Value-safe logger wrapper.
    Only allows logging of safe fields; anything else passed as context is dropped.
    """

    SAFE_FIELDS = frozenset({
        "request_id",
        "latency_ms",
        "status",
        "status_code",
        "error_code",
        "method",
        "path",
        "filter_type",
        "rule_kind",
        "rule_count",
        "iterations",
        "max_iterations",
        "tag",
        "attribute",
        "item_count",
        "exception_class",
    })

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _format_safe_context(self, context: dict[str, Any]) -> str:
        """Format only safe fields from context."""
        safe_items = []
        for key, value in context.items():
            if key in self.SAFE_FIELDS:
                safe_items.append(f"{key}={value}")
        return " | ".join(safe_items) if safe_items else ""

    def _log(self, level: int, message: str, context: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        ctx = self._format_safe_context(context)
        full_message = f"{message} | {ctx}" if ctx else message
        self._logger.log(level, full_message)

    def info(self, message: str, **context: Any) -> None:
        """Log info with safe context only."""
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning with safe context only."""
        self._log(logging.WARNING, message, context)

    def error(
        self,
        message: str,
        error_code: Optional[str] = None,
        **context: Any
    ) -> None:
        """
        Log error with safe context only.
        NEVER log exception messages; they may quote the filtered value.
        """
        if error_code:
            context["error_code"] = error_code
        self._log(logging.ERROR, message, context)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug with safe context only."""
        self._log(logging.DEBUG, message, context)


def get_safe_logger(name: str) -> SafeLogger:
    """Get a value-safe logger instance."""
    return SafeLogger(name)
