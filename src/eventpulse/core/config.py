"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "EventPulse"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Classification policy
    now_window_ms: int = 9 * 60 * 1000

    # Query batching
    batch_debounce_ms: int = 50
    default_news_source: str = "forex-factory"

    # Polling drivers
    display_timezone: str = "UTC"
    poll_interval_ms: int = 1000
    background_poll_interval_ms: int = 15000

    # Events API
    events_api_url: str = "http://localhost:8080/api/v1"
    events_api_timeout_seconds: float = 30.0

    @field_validator(
        "now_window_ms",
        "batch_debounce_ms",
        "poll_interval_ms",
        "background_poll_interval_ms",
    )
    @classmethod
    def validate_positive_duration(cls, v: int) -> int:
        """Reject zero or negative durations."""
        if v <= 0:
            raise ValueError("Durations must be positive milliseconds")
        return v

    @field_validator("display_timezone")
    @classmethod
    def validate_display_timezone(cls, v: str) -> str:
        """Validate the display timezone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
