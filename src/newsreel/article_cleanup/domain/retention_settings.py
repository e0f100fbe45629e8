from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt

from newsreel.article_cleanup.constants import (
    DEFAULT_ARTICLES_PER_FEED,
    DEFAULT_AUTO_CLEANUP_ENABLED,
    DEFAULT_UNREAD_AGE_DAYS,
    MAX_ARTICLES_PER_FEED,
    MAX_UNREAD_AGE_DAYS,
    MIN_ARTICLES_PER_FEED,
    MIN_UNREAD_AGE_DAYS,
)
from newsreel.article_cleanup.domain.exceptions import RetentionSettingsValidationError


class RetentionSettings(BaseModel):
    """Effective retention policy for one user."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    articles_per_feed: int = DEFAULT_ARTICLES_PER_FEED
    unread_age_days: int = DEFAULT_UNREAD_AGE_DAYS
    auto_cleanup_enabled: bool = DEFAULT_AUTO_CLEANUP_ENABLED


class StoredRetentionSettings(BaseModel):
    """A user_settings row as read from the store. Columns may be NULL."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    articles_per_feed: Optional[int] = None
    unread_article_age_days: Optional[int] = None
    enable_auto_cleanup: Optional[bool] = None


class RetentionSettingsUpdate(BaseModel):
    """Partial update. Fields left as None keep their stored value."""

    model_config = ConfigDict(extra="forbid")

    articles_per_feed: Optional[StrictInt] = None
    unread_age_days: Optional[StrictInt] = None
    auto_cleanup_enabled: Optional[StrictBool] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class RetentionLimits:
    """Bounds accepted for user retention settings."""

    min_articles_per_feed: int = MIN_ARTICLES_PER_FEED
    max_articles_per_feed: int = MAX_ARTICLES_PER_FEED
    min_unread_age_days: int = MIN_UNREAD_AGE_DAYS
    max_unread_age_days: int = MAX_UNREAD_AGE_DAYS

    def validate(self, update: RetentionSettingsUpdate) -> RetentionSettingsUpdate:
        """Check an update against the bounds.

        Raises:
            RetentionSettingsValidationError: If a value is outside its range
        """
        if update.articles_per_feed is not None and not (
            self.min_articles_per_feed <= update.articles_per_feed <= self.max_articles_per_feed
        ):
            raise RetentionSettingsValidationError(
                "articles_per_feed",
                f"must be between {self.min_articles_per_feed} and {self.max_articles_per_feed}",
            )

        if update.unread_age_days is not None and not (
            self.min_unread_age_days <= update.unread_age_days <= self.max_unread_age_days
        ):
            raise RetentionSettingsValidationError(
                "unread_age_days",
                f"must be between {self.min_unread_age_days} and {self.max_unread_age_days} days",
            )

        return update
