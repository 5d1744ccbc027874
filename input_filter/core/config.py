"""
Application configuration from environment variables.
Value-safe: no input payloads in defaults or logs.
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    service_env: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Service environment"
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # Filter configuration
    default_filter_type: str = Field(
        default="STRING",
        min_length=1,
        description="Filter type used when a request does not name one"
    )
    html_max_iterations: int = Field(
        default=25,
        ge=1,
        le=1000,
        description="Maximum tag-stripping passes before the markup cleaner gives up"
    )
    html_max_decode_iterations: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum entity-decoding passes for nested encodings"
    )
    max_batch_items: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum items accepted by the batch filter endpoint"
    )

    @field_validator("default_filter_type", mode="after")
    @classmethod
    def normalize_filter_type(cls, v: str) -> str:
        """Filter type names are case-insensitive; store them uppercase."""
        return v.strip().upper()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
