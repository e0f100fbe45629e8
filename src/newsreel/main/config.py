import logging
import os
import sys
from typing import Optional

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    # Infrastructure dependencies
    postgres_user: str
    postgres_host: str
    postgres_password: str
    postgres_port: int
    postgres_db: str
    redis_host: str
    redis_port: int

    # Background worker configuration
    worker_max_jobs: int = 10
    worker_job_timeout_seconds: int = 60 * 60  # Scheduled cleanup must finish within an hour

    # Retention defaults (used when a user has no stored settings)
    default_articles_per_feed: int = 100
    default_unread_age_days: int = 30

    # Accepted ranges for user retention settings
    min_articles_per_feed: int = 50
    max_articles_per_feed: int = 500
    min_unread_age_days: int = 7
    max_unread_age_days: int = 90

    # Cleanup engine
    cleanup_delete_batch_size: int = 500
    cleanup_fast_path_enabled: bool = True  # Try the cleanup_feed_articles() database function first
    cleanup_protection_fail_closed: bool = False  # Abort a feed when protection cannot be resolved
    cleanup_feed_timeout_seconds: Optional[float] = None  # None disables the per-feed bound

    # Scheduled cleanup (UTC)
    cleanup_cron_hour: int = 2
    cleanup_cron_minute: int = 0

    # Cross-instance run lock (Redis SET NX lease)
    cleanup_distributed_lock_enabled: bool = False
    cleanup_lock_key: str = "article_cleanup:run_lock"
    cleanup_lock_ttl_seconds: int = 15 * 60

    # Run log retention
    cleanup_log_retention_days: int = 90

    # Dev
    testing: bool = False
    dev: bool = False

    @model_validator(mode="after")
    def validate_retention_ranges(self):
        """Reject retention ranges that cannot hold their own defaults."""
        if self.min_articles_per_feed > self.max_articles_per_feed:
            logging.error(
                "MIN_ARTICLES_PER_FEED (%s) is greater than MAX_ARTICLES_PER_FEED (%s)",
                self.min_articles_per_feed,
                self.max_articles_per_feed,
            )
            sys.exit(1)

        if self.min_unread_age_days > self.max_unread_age_days:
            logging.error(
                "MIN_UNREAD_AGE_DAYS (%s) is greater than MAX_UNREAD_AGE_DAYS (%s)",
                self.min_unread_age_days,
                self.max_unread_age_days,
            )
            sys.exit(1)

        if not (
            self.min_articles_per_feed
            <= self.default_articles_per_feed
            <= self.max_articles_per_feed
        ):
            logging.error(
                "DEFAULT_ARTICLES_PER_FEED (%s) must be within [%s, %s]",
                self.default_articles_per_feed,
                self.min_articles_per_feed,
                self.max_articles_per_feed,
            )
            sys.exit(1)

        if not (
            self.min_unread_age_days
            <= self.default_unread_age_days
            <= self.max_unread_age_days
        ):
            logging.error(
                "DEFAULT_UNREAD_AGE_DAYS (%s) must be within [%s, %s]",
                self.default_unread_age_days,
                self.min_unread_age_days,
                self.max_unread_age_days,
            )
            sys.exit(1)

        return self

    @model_validator(mode="after")
    def validate_cleanup_settings(self):
        """Ensure worker and cleanup values are sane."""
        if self.worker_max_jobs <= 0:
            logging.error(
                "WORKER_MAX_JOBS must be greater than zero. Current value: %s",
                self.worker_max_jobs,
            )
            sys.exit(1)

        if self.cleanup_delete_batch_size <= 0:
            logging.error(
                "CLEANUP_DELETE_BATCH_SIZE must be greater than zero. Current value: %s",
                self.cleanup_delete_batch_size,
            )
            sys.exit(1)

        if self.cleanup_feed_timeout_seconds is not None and self.cleanup_feed_timeout_seconds <= 0:
            logging.error(
                "CLEANUP_FEED_TIMEOUT_SECONDS must be positive when set. Current value: %s",
                self.cleanup_feed_timeout_seconds,
            )
            sys.exit(1)

        if self.cleanup_lock_ttl_seconds <= 0:
            logging.error(
                "CLEANUP_LOCK_TTL_SECONDS must be greater than zero. Current value: %s",
                self.cleanup_lock_ttl_seconds,
            )
            sys.exit(1)

        if self.cleanup_distributed_lock_enabled and (
            self.cleanup_lock_ttl_seconds < self.worker_job_timeout_seconds
        ):
            logging.warning(
                "CLEANUP_LOCK_TTL_SECONDS (%s) is shorter than WORKER_JOB_TIMEOUT_SECONDS (%s). "
                "A slow run may lose the lock before it finishes.",
                self.cleanup_lock_ttl_seconds,
                self.worker_job_timeout_seconds,
            )

        return self

    @computed_field
    @property
    def sync_database_url(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton, creating it if needed.

    Returns:
        Settings: The application settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (primarily for testing).

    Args:
        settings: The Settings instance to use.
    """
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to None (for test cleanup)."""
    global _settings
    _settings = None


def get_loglevel():
    loglevel = os.getenv("LOGLEVEL", "INFO")

    match loglevel:
        case "INFO":
            return logging.INFO
        case "WARNING":
            return logging.WARNING
        case "ERROR":
            return logging.ERROR
        case "CRITICAL":
            return logging.CRITICAL
        case "DEBUG":
            return logging.DEBUG
        case _:
            return logging.INFO
