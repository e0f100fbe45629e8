from typing import TYPE_CHECKING, Any, Mapping, Union
from uuid import UUID

from pydantic import ValidationError

from newsreel.article_cleanup.application.settings_resolver import merge_with_defaults
from newsreel.article_cleanup.domain.exceptions import RetentionSettingsValidationError
from newsreel.article_cleanup.domain.retention_settings import (
    RetentionLimits,
    RetentionSettings,
    RetentionSettingsUpdate,
)
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.domain.repositories import RetentionSettingsRepository

logger = get_logger(__name__)


class RetentionSettingsService:
    """Reads and updates a user's retention preferences."""

    def __init__(
        self,
        settings_repo: "RetentionSettingsRepository",
        defaults: RetentionSettings | None = None,
        limits: RetentionLimits | None = None,
    ):
        self.settings_repo = settings_repo
        self.defaults = defaults or RetentionSettings()
        self.limits = limits or RetentionLimits()

    async def get_settings(self, user_id: UUID) -> RetentionSettings:
        stored = await self.settings_repo.get(user_id)
        return merge_with_defaults(stored, self.defaults)

    async def update_settings(
        self,
        user_id: UUID,
        update: Union[RetentionSettingsUpdate, Mapping[str, Any]],
    ) -> RetentionSettings:
        """Apply a partial update and return the resulting effective settings.

        Raises:
            RetentionSettingsValidationError: If a field has the wrong type,
                is unknown, or is outside its accepted range. Nothing is
                written in that case.
        """
        if not isinstance(update, RetentionSettingsUpdate):
            try:
                update = RetentionSettingsUpdate.model_validate(dict(update))
            except ValidationError as exc:
                error = exc.errors()[0]
                field = ".".join(str(part) for part in error["loc"]) or "settings"
                raise RetentionSettingsValidationError(field, error["msg"]) from exc

        self.limits.validate(update)

        if update.is_empty():
            return await self.get_settings(user_id)

        stored = await self.settings_repo.upsert(user_id, update)
        logger.info(
            "Retention settings updated",
            extra={"user_id": str(user_id), **update.model_dump(exclude_none=True)},
        )

        return merge_with_defaults(stored, self.defaults)
