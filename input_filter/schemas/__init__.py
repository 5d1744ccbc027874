"""
Pydantic schemas: persisted cleaner config and API DTOs.
"""
from input_filter.schemas.cleaner_config import DEFAULT_ALLOWED_TAGS, HtmlCleanerConfig

__all__ = [
    "DEFAULT_ALLOWED_TAGS",
    "HtmlCleanerConfig",
]
