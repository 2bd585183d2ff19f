"""
Startup configuration validation and redacted summary logging.

Called early in the application lifespan to fail fast on misconfiguration.
"""

import logging
import re
from typing import List
from urllib.parse import urlsplit, urlunsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import Settings

logger = logging.getLogger(__name__)

# Minimal pattern: scheme://... or scheme:///...
_SQLALCHEMY_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-.]*://")


def validate_config(settings: Settings) -> List[str]:
    """
    Validate application configuration and return a list of error strings.

    An empty list means the configuration is valid.
    """
    errors: List[str] = []

    # -- DATABASE_URL format -----------------------------------------------
    db_url = (settings.database_url or "").strip()
    if not db_url:
        errors.append("DATABASE_URL is required but missing or empty")
    elif not _SQLALCHEMY_URL_RE.match(db_url):
        errors.append(
            f"DATABASE_URL format is invalid (expected SQLAlchemy URL like "
            f"'sqlite+aiosqlite:///...' or 'postgresql+asyncpg://...'): "
            f"'{_redact_url(db_url)}'"
        )

    # -- Production DB enforcement -----------------------------------------
    if settings.environment.lower() == "production" and db_url:
        if db_url.lower().startswith("sqlite"):
            errors.append(
                "SQLite is not allowed in production. "
                "DATABASE_URL must use PostgreSQL (e.g. postgresql+asyncpg://...)"
            )

    # -- TIMEZONE -----------------------------------------------------------
    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"TIMEZONE is not a known IANA zone: '{settings.timezone}'")

    # -- Reminder fan-out bounds -------------------------------------------
    if settings.reminder_concurrency < 1:
        errors.append("REMINDER_CONCURRENCY must be at least 1")
    if settings.store_timeout_seconds <= 0:
        errors.append("STORE_TIMEOUT_SECONDS must be positive")
    if settings.notification_retention_days < 1:
        errors.append("NOTIFICATION_RETENTION_DAYS must be at least 1")
    if settings.save_retry_attempts < 1:
        errors.append("SAVE_RETRY_ATTEMPTS must be at least 1")

    return errors


def _redact_url(database_url: str) -> str:
    """Hide the password component of a database URL."""
    parts = urlsplit(database_url)
    if parts.password is None:
        return database_url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@")
    return urlunsplit(parts._replace(netloc=netloc))


def _db_type(database_url: str) -> str:
    """Extract the database backend name from a SQLAlchemy URL."""
    if not database_url:
        return "none"
    scheme = database_url.split("://")[0] if "://" in database_url else database_url
    # e.g. "sqlite+aiosqlite" -> "sqlite", "postgresql+asyncpg" -> "postgresql"
    return scheme.split("+")[0].lower()


def log_config_summary(settings: Settings) -> None:
    """
    Log an INFO-level summary of loaded configuration with secrets redacted.

    Includes: environment, database type, timezone and reminder fan-out limits.
    """
    summary_lines = [
        f"environment={settings.environment}",
        f"database={_db_type(settings.database_url)}",
        f"timezone={settings.timezone}",
        f"reminder_concurrency={settings.reminder_concurrency}",
        f"store_timeout={settings.store_timeout_seconds}s",
        f"retention_days={settings.notification_retention_days}",
        f"reminder_dedup={'on' if settings.reminder_dedup else 'off'}",
    ]

    logger.info("Config loaded: %s", " | ".join(summary_lines))
