"""Application configuration using Pydantic settings."""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"
    json_logs: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # ==========================================================================
    # Tracker / Scheduler
    # ==========================================================================
    scheduler_enabled: bool = True
    check_interval_minutes: int = 5
    initial_check_delay_seconds: int = 30  # First check shortly after startup
    request_delay_seconds: float = 2.0  # Pause between products within a tick

    # ==========================================================================
    # Marketplace / Extraction
    # ==========================================================================
    marketplace_domains: list[str] = ["amazon.in"]
    short_link_domains: list[str] = ["amzn.in"]
    http_timeout_seconds: float = 30.0
    placeholder_image_url: str = "https://placehold.co/400x300?text=No+Image+Available"

    # ==========================================================================
    # Products
    # ==========================================================================
    history_limit: int = 30  # Price points kept per product
    default_drop_percentage: int = Field(default=60, ge=0, le=100)

    # ==========================================================================
    # Storage
    # ==========================================================================
    storage_backend: Literal["file", "memory"] = "file"
    data_file_path: str = "data/data.json"
    # Serverless hosts have no durable filesystem; snapshots become no-ops
    serverless: bool = Field(
        default=False,
        validation_alias=AliasChoices("serverless", "vercel"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
