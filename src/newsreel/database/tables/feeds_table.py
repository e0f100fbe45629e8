from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Text, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from newsreel.database.tables.base_class import BasePublic


class Users(BasePublic):
    email: Mapped[str] = mapped_column(unique=True)
    display_name: Mapped[Optional[str]] = mapped_column()


class Feeds(BasePublic):
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey(Users.id, ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(Text)
    url: Mapped[str] = mapped_column(Text)


class Articles(BasePublic):
    """Articles ingested from a feed. ``created_at`` is the ingestion time."""

    feed_id: Mapped[UUID] = mapped_column(
        ForeignKey(Feeds.id, ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(Text)
    url: Mapped[str] = mapped_column(Text)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )


class UserArticles(BasePublic):
    """Per-user engagement state. Rows go away with their article."""

    __tablename__ = "user_articles"
    __table_args__ = (
        UniqueConstraint("user_id", "article_id", name="uq_user_articles_user_article"),
        Index(
            "idx_user_articles_protected",
            "article_id",
            postgresql_where=text("is_read = true OR is_starred = true"),
        ),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey(Users.id, ondelete="CASCADE"))
    article_id: Mapped[UUID] = mapped_column(
        ForeignKey(Articles.id, ondelete="CASCADE"), index=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    is_starred: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")


class ArticleComments(BasePublic):
    __tablename__ = "article_comments"

    user_id: Mapped[UUID] = mapped_column(ForeignKey(Users.id, ondelete="CASCADE"))
    article_id: Mapped[UUID] = mapped_column(
        ForeignKey(Articles.id, ondelete="CASCADE"), index=True
    )
    content: Mapped[str] = mapped_column(Text)


Index(
    "idx_articles_feed_effective_date",
    Articles.feed_id,
    func.coalesce(Articles.published_at, Articles.created_at).desc(),
)
