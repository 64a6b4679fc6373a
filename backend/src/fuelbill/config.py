"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage
    download_dir: Path = Field(
        default=Path("./downloads"),
        description="Directory where generated bill PDFs are written"
    )

    # Bill form automation
    fuel_bill_url: str = Field(
        default="https://freeforonline.com/fuel-bills/index.html",
        description="URL of the third-party fuel bill form"
    )
    headless: bool = Field(
        default=True,
        description="Run the browser without a window"
    )
    page_timeout_ms: int = Field(
        default=60_000,
        gt=0,
        description="Timeout for page navigation"
    )
    element_timeout_ms: int = Field(
        default=10_000,
        gt=0,
        description="Timeout for waiting on form elements"
    )
    template_settle_ms: int = Field(
        default=500,
        ge=0,
        description="Pause after selecting a template so the preview can re-render"
    )

    # Retry policy
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per bill before giving up"
    )
    retry_backoff_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Wait after failed attempt N is N times this value"
    )

    # Scheduling
    min_days_apart: int = Field(
        default=3,
        ge=0,
        description="Minimum number of days between two bills in a batch"
    )

    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    This ensures consistent configuration across the application lifecycle.
    """
    return Settings()
