from typing import TYPE_CHECKING
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import insert

from newsreel.article_cleanup.domain.repositories import RetentionSettingsRepository
from newsreel.article_cleanup.domain.retention_settings import (
    RetentionSettingsUpdate,
    StoredRetentionSettings,
)
from newsreel.database.tables.user_settings_table import UserSettings

if TYPE_CHECKING:
    from newsreel.database.database import DatabaseSessionManager

# Domain field -> user_settings column
_COLUMN_NAMES = {
    "articles_per_feed": "articles_per_feed",
    "unread_age_days": "unread_article_age_days",
    "auto_cleanup_enabled": "enable_auto_cleanup",
}


class RetentionSettingsRepoImpl(RetentionSettingsRepository):
    def __init__(self, session_manager: "DatabaseSessionManager"):
        self.session_manager = session_manager

    async def get(self, user_id: UUID) -> StoredRetentionSettings | None:
        query = sa.select(UserSettings).where(UserSettings.user_id == user_id)

        async with self.session_manager.transaction() as session:
            record = await session.scalar(query)

        if record is None:
            return None

        return StoredRetentionSettings.model_validate(record)

    async def upsert(
        self, user_id: UUID, update: RetentionSettingsUpdate
    ) -> StoredRetentionSettings:
        """Insert or partially update the user's row. Unset fields are left untouched."""
        values = {
            _COLUMN_NAMES[field]: value
            for field, value in update.model_dump(exclude_none=True).items()
        }

        stmt = insert(UserSettings).values(user_id=user_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserSettings.user_id],
            set_={**values, "updated_at": sa.func.now()},
        ).returning(UserSettings)

        async with self.session_manager.transaction() as session:
            record = await session.scalar(stmt)

        return StoredRetentionSettings.model_validate(record)
