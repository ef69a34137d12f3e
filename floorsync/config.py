"""Application configuration and settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLOORSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "Floor Sync"
    debug: bool = False
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Status sync housekeeping
    cleanup_interval_seconds: float = 60 * 60  # hourly
    pending_max_age_seconds: float = 24 * 60 * 60
    sync_threshold_seconds: float = 5.0

    # Seating recommendations
    default_max_wait_minutes: float = 15
    recommendation_limit: int = 5


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
