"""
Cleaners: objects satisfying the single-method cleaning capability.
"""
from input_filter.services.cleaners.base import Cleaner, to_text
from input_filter.services.cleaners.html_cleaner import HtmlCleaner

__all__ = [
    "Cleaner",
    "HtmlCleaner",
    "to_text",
]
