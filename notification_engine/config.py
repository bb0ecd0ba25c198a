"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        default="change-me",
        description="Secret key for verifying JWT bearer tokens",
        min_length=1,
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone (or UTC±HH:MM offset) used for stored datetimes",
    )
    scheduler_enabled: bool = Field(
        default=True,
        description="Start the periodic notification jobs with the application",
    )
    scheduler_interval_seconds: float = Field(
        default=300,
        description="Seconds between scans for due scheduled notifications",
        gt=0,
    )
    expiry_sweep_interval_seconds: float = Field(
        default=3600,
        description="Seconds between sweeps removing expired in-app notifications",
        gt=0,
    )
    dispatch_max_concurrency: int = Field(
        default=8,
        description="Maximum number of webhook deliveries running at the same time",
        ge=1,
    )
    webhook_user_agent: str = Field(
        default="Notification-Engine-Webhook/1.0",
        description="User-Agent header sent with every outbound webhook",
        min_length=1,
    )
    webhook_source_name: str = Field(
        default="Notification Engine",
        description="Value of the ``source`` field in default webhook payloads",
        min_length=1,
    )

    @model_validator(mode="after")
    def _validate_sweep_interval(self) -> "Settings":
        if self.expiry_sweep_interval_seconds < self.scheduler_interval_seconds:
            raise ValueError(
                "EXPIRY_SWEEP_INTERVAL_SECONDS must not be shorter than SCHEDULER_INTERVAL_SECONDS"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
