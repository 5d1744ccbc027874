"""
Custom exceptions for the filter registry and cleaners.
Value-safe: messages name rules and types, never the filtered input.
"""
from enum import Enum
from typing import Optional


class FilterErrorCode(str, Enum):
    """Value-safe error codes for filter failures."""
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    RULE_NOT_FOUND = "RULE_NOT_FOUND"


class FilterError(Exception):
    """
    Base exception for filter errors.

    Attributes:
        error_code: Value-safe error code for logging and responses
        message: Value-safe message (no filtered input)
    """

    def __init__(
        self,
        error_code: FilterErrorCode,
        message: str = "Filter failed"
    ):
        self.error_code = error_code
        self.message = message
        super().__init__(message)


class InvalidConfigurationError(FilterError):
    """Raised when a rule, default rule or cleaner config cannot be accepted."""

    def __init__(self, reason: str = "Invalid filter configuration"):
        super().__init__(
            error_code=FilterErrorCode.INVALID_CONFIGURATION,
            message=reason
        )


class RuleNotFoundError(FilterError):
    """Raised by accessors that guarantee a rule is registered."""

    def __init__(self, name: Optional[str] = None):
        self.name = name
        super().__init__(
            error_code=FilterErrorCode.RULE_NOT_FOUND,
            message=f"No filter rule registered for: {name}"
        )
