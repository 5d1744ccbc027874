"""
Input filter: type-driven sanitization of untrusted input.

    from input_filter import InputFilter

    input_filter = InputFilter()
    input_filter.clean("-42", "uint")                          # 42
    input_filter.clean("<script>x</script>hi", "string")       # "hi"
"""
from input_filter.services.cleaners.base import Cleaner
from input_filter.services.cleaners.html_cleaner import HtmlCleaner
from input_filter.services.exceptions import (
    FilterError,
    FilterErrorCode,
    InvalidConfigurationError,
    RuleNotFoundError,
)
from input_filter.services.input_filter import InputFilter

__version__ = "0.1.0"

__all__ = [
    "Cleaner",
    "FilterError",
    "FilterErrorCode",
    "HtmlCleaner",
    "InputFilter",
    "InvalidConfigurationError",
    "RuleNotFoundError",
    "__version__",
]
