"""
Application configuration using Pydantic Settings.

Centralizes all configuration with environment variable support.
Structured defaults (discipline catalog, job table) live in YAML, see
defaults_loader.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/discipline_tracker.db"

    # Single IANA zone for every "today"/weekday computation and the scheduler
    timezone: str = "Africa/Lagos"

    # Reminder fan-out
    reminder_concurrency: int = 8
    store_timeout_seconds: float = 10.0
    reminder_dedup: bool = False

    # Retention
    notification_retention_days: int = 30

    # Optimistic upsert retries for weekly record saves
    save_retry_attempts: int = 3

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_to_file: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
