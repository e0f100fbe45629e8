from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from newsreel.database.tables.base_class import BaseWithTableName, TimestampMixin
from newsreel.database.tables.feeds_table import Users


class UserSettings(TimestampMixin, BaseWithTableName):
    """Per-user retention settings. One row per user, created lazily."""

    __tablename__ = "user_settings"
    __table_args__ = (
        CheckConstraint(
            "articles_per_feed >= 50 AND articles_per_feed <= 500",
            name="user_settings_articles_per_feed_range",
        ),
        CheckConstraint(
            "unread_article_age_days >= 7 AND unread_article_age_days <= 90",
            name="user_settings_unread_age_range",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey(Users.id, ondelete="CASCADE"),
        primary_key=True,
    )
    articles_per_feed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=100, server_default="100"
    )
    unread_article_age_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=30, server_default="30"
    )
    enable_auto_cleanup: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
