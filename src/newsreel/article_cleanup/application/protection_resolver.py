"""Resolution of the protection set for a cleanup run.

An article is protected when any user, not only the one whose cleanup is
running, has read it, starred it or commented on it.
"""

from typing import TYPE_CHECKING, Optional
from uuid import UUID

from newsreel.article_cleanup.domain.exceptions import ProtectionUnavailableError
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.domain.repositories import ArticleRetentionRepository

logger = get_logger(__name__)


class ProtectionResolver:
    """Computes the identifiers that must never be evicted in this run.

    Args:
        article_repo: Source of engagement and comment data.
        fail_closed: When False (the default) a read failure yields an empty
            set, which makes more articles eligible for deletion. When True the
            failure is raised as ProtectionUnavailableError and the caller
            aborts the feed.
    """

    def __init__(self, article_repo: "ArticleRetentionRepository", fail_closed: bool = False):
        self.article_repo = article_repo
        self.fail_closed = fail_closed

    async def resolve(self, user_id: UUID, feed_id: Optional[UUID] = None) -> frozenset[UUID]:
        try:
            engaged = await self.article_repo.get_protected_article_ids(user_id, feed_id)
            commented = await self.article_repo.get_commented_article_ids(feed_id)
        except Exception as exc:
            if self.fail_closed:
                logger.error(
                    "Failed to resolve protected articles, aborting feed cleanup",
                    extra={"user_id": str(user_id), "feed_id": str(feed_id), "error": str(exc)},
                )
                raise ProtectionUnavailableError(
                    f"Could not resolve protected articles: {exc}"
                ) from exc

            logger.error(
                "Failed to resolve protected articles, continuing with an empty protection set",
                extra={
                    "user_id": str(user_id),
                    "feed_id": str(feed_id),
                    "error": str(exc),
                    "protection_fail_open": True,
                },
                exc_info=True,
            )
            return frozenset()

        protected = frozenset(engaged) | frozenset(commented)

        logger.debug(
            "Resolved protected articles",
            extra={
                "feed_id": str(feed_id),
                "engaged_count": len(engaged),
                "commented_count": len(commented),
                "protected_count": len(protected),
            },
        )
        return protected
