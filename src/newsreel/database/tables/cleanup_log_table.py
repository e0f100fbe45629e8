from typing import Optional
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from newsreel.database.tables.base_class import BasePublic
from newsreel.database.tables.feeds_table import Feeds, Users


class CleanupLog(BasePublic):
    """Append-only record of every feed-scope cleanup invocation."""

    __tablename__ = "cleanup_log"
    __table_args__ = (
        CheckConstraint(
            "trigger_type IN ('sync', 'scheduled', 'manual')",
            name="cleanup_log_trigger_type_valid",
        ),
        CheckConstraint(
            "articles_deleted >= 0",
            name="cleanup_log_articles_deleted_non_negative",
        ),
    )

    user_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey(Users.id, ondelete="CASCADE"), nullable=True, index=True
    )
    feed_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey(Feeds.id, ondelete="SET NULL"), nullable=True, index=True
    )
    trigger_type: Mapped[str] = mapped_column(Text, index=True)
    articles_deleted: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    duration_ms: Mapped[int] = mapped_column(Integer)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


Index("idx_cleanup_log_user_created", CleanupLog.user_id, CleanupLog.created_at.desc())
Index(
    "idx_cleanup_log_errors",
    CleanupLog.created_at.desc(),
    postgresql_where=CleanupLog.error_message.isnot(None),
)
