"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend API
    api_base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the marketplace REST backend",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token attached to every backend request",
    )
    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
        gt=0,
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = "api_base_url must use http or https"
            raise ValueError(msg)
        return v.rstrip("/")

    # Import job polling
    poll_interval: float = Field(
        default=1.0,
        description="Seconds between status polls for an active import job",
        gt=0,
    )
    poll_max_backoff: float = Field(
        default=30.0,
        description="Upper bound in seconds for the delay after consecutive poll failures",
        gt=0,
    )
    job_grace_period: float = Field(
        default=3.0,
        description="Seconds a finished job stays in the active view before it is cleared",
        ge=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
