"""
Application configuration using pydantic-settings.
All settings read from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Central configuration for the submission intake service."""

    # ── Application ──────────────────────────────────────────
    APP_NAME: str = "submission-intake"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ── Database ─────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./intake.db"
    DB_ECHO: bool = False

    # ── Listing ──────────────────────────────────────────────
    LIST_DEFAULT_LIMIT: int = 100
    LIST_MAX_LIMIT: int = 500

    # ── Attachments ──────────────────────────────────────────
    MAX_ATTACHMENT_SIZE_MB: int = 25

    # ── Review ───────────────────────────────────────────────
    # When set, a voucher can only be linked to an approved submission
    LINK_REQUIRES_APPROVAL: bool = False

    # ── Inbox importer ───────────────────────────────────────
    INBOX_DIR: str = "./inbox"
    INBOX_PATTERN: str = "*.json"
    REDIS_URL: str = "redis://localhost:6379/0"
    QUEUE_NAME: str = "intake"
    JOB_TIMEOUT_SECONDS: int = 300

    # ── Observability ────────────────────────────────────────
    SENTRY_DSN: Optional[str] = None
    PROMETHEUS_ENABLED: bool = True

    # ── Security ─────────────────────────────────────────────
    API_KEY: Optional[str] = None
    CORS_ORIGINS: str = "*"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    @property
    def max_attachment_bytes(self) -> int:
        return self.MAX_ATTACHMENT_SIZE_MB * 1024 * 1024


# Singleton instance
settings = Settings()
