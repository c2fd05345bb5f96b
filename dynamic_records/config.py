"""
Configuration management for dynamic-records.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client settings."""

    # Remote store
    api_url: str = Field(default="http://localhost:8000", env="API_URL")
    api_token: Optional[str] = Field(default=None, env="API_TOKEN")
    request_timeout_seconds: float = Field(default=30.0, env="REQUEST_TIMEOUT_SECONDS")

    # Transport
    metadata_namespace: str = Field(
        default="metadata",
        env="METADATA_NAMESPACE",
        description="Prefix of entity metadata parts in multipart payloads (e.g. 'metadata.issuer').",
    )

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="console", env="LOG_FORMAT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get client settings."""
    return settings
