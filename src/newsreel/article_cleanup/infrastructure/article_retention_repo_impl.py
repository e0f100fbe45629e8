from typing import TYPE_CHECKING, Optional
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.exc import DBAPIError

from newsreel.article_cleanup.constants import UNDEFINED_FUNCTION_SQLSTATE
from newsreel.article_cleanup.domain.article import ArticleSnapshot
from newsreel.article_cleanup.domain.repositories import ArticleRetentionRepository
from newsreel.database.tables.feeds_table import (
    ArticleComments,
    Articles,
    Feeds,
    UserArticles,
)
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.database.database import DatabaseSessionManager

logger = get_logger(__name__)


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    """Postgres error code of a wrapped driver error, if it carries one."""
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


class ArticleRetentionRepoImpl(ArticleRetentionRepository):
    """Every call runs in its own short transaction."""

    def __init__(self, session_manager: "DatabaseSessionManager"):
        self.session_manager = session_manager

    async def get_protected_article_ids(
        self, user_id: UUID, feed_id: Optional[UUID] = None
    ) -> list[UUID]:
        # Engagement by any user protects the article, not only by user_id
        query = (
            sa.select(UserArticles.article_id)
            .where(sa.or_(UserArticles.is_read.is_(True), UserArticles.is_starred.is_(True)))
            .distinct()
        )
        if feed_id is not None:
            query = query.join(Articles, Articles.id == UserArticles.article_id).where(
                Articles.feed_id == feed_id
            )

        async with self.session_manager.transaction() as session:
            result = await session.scalars(query)
            return list(result.all())

    async def get_commented_article_ids(self, feed_id: Optional[UUID] = None) -> list[UUID]:
        query = sa.select(ArticleComments.article_id).distinct()
        if feed_id is not None:
            query = query.join(Articles, Articles.id == ArticleComments.article_id).where(
                Articles.feed_id == feed_id
            )

        async with self.session_manager.transaction() as session:
            result = await session.scalars(query)
            return list(result.all())

    async def list_articles(self, feed_id: UUID) -> list[ArticleSnapshot]:
        query = (
            sa.select(
                Articles.id,
                Articles.feed_id,
                Articles.created_at,
                Articles.published_at,
            )
            .where(Articles.feed_id == feed_id)
            .order_by(
                sa.func.coalesce(Articles.published_at, Articles.created_at).desc(),
                Articles.id,
            )
        )

        async with self.session_manager.transaction() as session:
            result = await session.execute(query)
            rows = result.all()

        return [
            ArticleSnapshot(
                id=row.id,
                feed_id=row.feed_id,
                created_at=row.created_at,
                published_at=row.published_at,
            )
            for row in rows
        ]

    async def bulk_cleanup(
        self, feed_id: UUID, capacity_limit: int, age_days: int
    ) -> Optional[int]:
        query = sa.select(
            sa.func.cleanup_feed_articles(
                sa.cast(feed_id, sa.Uuid),
                sa.cast(capacity_limit, sa.Integer),
                sa.cast(age_days, sa.Integer),
            )
        )

        try:
            async with self.session_manager.transaction() as session:
                deleted = await session.scalar(query)
        except DBAPIError as exc:
            if _sqlstate(exc) == UNDEFINED_FUNCTION_SQLSTATE:
                logger.debug("cleanup_feed_articles() is not deployed")
                return None
            raise

        return int(deleted) if deleted is not None else None

    async def delete_articles(self, article_ids: list[UUID]) -> int:
        if not article_ids:
            return 0

        stmt = sa.delete(Articles).where(Articles.id.in_(article_ids))

        async with self.session_manager.transaction() as session:
            result = await session.execute(stmt)

        return result.rowcount or 0

    async def list_feed_ids(self, user_id: UUID) -> list[UUID]:
        query = sa.select(Feeds.id).where(Feeds.user_id == user_id).order_by(Feeds.created_at)

        async with self.session_manager.transaction() as session:
            result = await session.scalars(query)
            return list(result.all())

    async def list_users_with_feeds(self) -> list[UUID]:
        query = sa.select(Feeds.user_id).distinct()

        async with self.session_manager.transaction() as session:
            result = await session.scalars(query)
            return list(result.all())
