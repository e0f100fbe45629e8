from typing import TYPE_CHECKING
from uuid import UUID

from newsreel.article_cleanup.domain.retention_settings import (
    RetentionSettings,
    StoredRetentionSettings,
)
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.domain.repositories import RetentionSettingsRepository

logger = get_logger(__name__)


def merge_with_defaults(
    stored: StoredRetentionSettings | None, defaults: RetentionSettings
) -> RetentionSettings:
    """Fill columns the user never set with the system defaults."""
    if stored is None:
        return defaults

    return RetentionSettings(
        articles_per_feed=(
            stored.articles_per_feed
            if stored.articles_per_feed is not None
            else defaults.articles_per_feed
        ),
        unread_age_days=(
            stored.unread_article_age_days
            if stored.unread_article_age_days is not None
            else defaults.unread_age_days
        ),
        auto_cleanup_enabled=(
            stored.enable_auto_cleanup
            if stored.enable_auto_cleanup is not None
            else defaults.auto_cleanup_enabled
        ),
    )


class RetentionSettingsResolver:
    """Loads a user's retention policy for a cleanup run.

    Never raises: when the settings store is unavailable the system defaults
    are used, so cleanup does not depend on preference storage being up.
    """

    def __init__(
        self,
        settings_repo: "RetentionSettingsRepository",
        defaults: RetentionSettings | None = None,
    ):
        self.settings_repo = settings_repo
        self.defaults = defaults or RetentionSettings()

    async def resolve(self, user_id: UUID) -> RetentionSettings:
        try:
            stored = await self.settings_repo.get(user_id)
        except Exception as exc:
            logger.error(
                "Failed to load retention settings, using defaults",
                extra={"user_id": str(user_id), "error": str(exc)},
                exc_info=True,
            )
            return self.defaults

        return merge_with_defaults(stored, self.defaults)
