"""Application configuration using pydantic-settings."""

from pydantic import Field
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
    app_name: str = "File Sequencer Bot"
    environment: str = "development"
    log_level: str = "info"

    # Telegram
    telegram_bot_token: str = ""
    updates_url: str = "https://t.me/espadaSupport"
    owner_handle: str = "@sluury"

    # MongoDB
    mongodb_uri: str = "mongodb://mongodb:27017"
    mongodb_database: str = "seq"
    users_collection: str = "users"

    # Delivery
    batch_size: int = Field(default=50, gt=0)
    item_delay_ms: int = Field(default=100, ge=0)
    batch_delay_ms: int = Field(default=100, ge=0)
    max_retry_attempts: int = Field(default=3, gt=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    failure_display_limit: int = Field(default=5, ge=0)

    # Sessions
    max_items_per_session: int = Field(default=200, gt=0)
    progress_interval: int = Field(default=50, gt=0)
    progress_initial_items: int = Field(default=3, ge=0)
    idle_timeout_minutes: float = Field(default=30, gt=0)
    reaper_interval_minutes: float = Field(default=10, gt=0)


settings = Settings()
