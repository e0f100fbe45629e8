"""Two interchangeable ways of evicting a feed's articles.

Both honour the same contract: same protection semantics, same capacity and
age strategies, same union. The engine-side strategy does it in one database
call; the client-side strategy computes the candidates here and deletes them
through the BatchDeleter.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Final, Literal, Union
from uuid import UUID

from newsreel.article_cleanup.domain.selectors import select_evictions
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.application.batch_deleter import BatchDeleter
    from newsreel.article_cleanup.application.protection_resolver import ProtectionResolver
    from newsreel.article_cleanup.domain.repositories import ArticleRetentionRepository
    from newsreel.article_cleanup.domain.retention_settings import RetentionSettings

logger = get_logger(__name__)


class _EvictionUnavailable:
    """Signals that a strategy cannot run here. Never used for ordinary failures."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EVICTION_UNAVAILABLE"

    def __bool__(self) -> Literal[False]:
        return False


EVICTION_UNAVAILABLE: Final = _EvictionUnavailable()

EvictionOutcome = Union[int, _EvictionUnavailable]


class EvictionStrategy(ABC):
    name: str = "base"

    @abstractmethod
    async def evict(
        self, user_id: UUID, feed_id: UUID, settings: "RetentionSettings"
    ) -> EvictionOutcome:
        """Delete the feed's evictable articles.

        Returns:
            Number of deleted articles, or EVICTION_UNAVAILABLE when this
            strategy is not usable and the next one should be tried.
        """


class EngineSideEviction(EvictionStrategy):
    """Runs cleanup_feed_articles() inside the database."""

    name = "engine"

    def __init__(self, article_repo: "ArticleRetentionRepository", enabled: bool = True):
        self.article_repo = article_repo
        self.enabled = enabled

    async def evict(
        self, user_id: UUID, feed_id: UUID, settings: "RetentionSettings"
    ) -> EvictionOutcome:
        if not self.enabled:
            return EVICTION_UNAVAILABLE

        deleted = await self.article_repo.bulk_cleanup(
            feed_id, settings.articles_per_feed, settings.unread_age_days
        )
        if deleted is None or deleted < 0:
            logger.info(
                "Engine-side cleanup is not available, falling back",
                extra={"feed_id": str(feed_id)},
            )
            return EVICTION_UNAVAILABLE

        return deleted


class ClientSideEviction(EvictionStrategy):
    """Resolves protection, runs both selectors on one snapshot and batch-deletes the union."""

    name = "client"

    def __init__(
        self,
        article_repo: "ArticleRetentionRepository",
        protection_resolver: "ProtectionResolver",
        batch_deleter: "BatchDeleter",
        clock: Callable[[], datetime] | None = None,
    ):
        self.article_repo = article_repo
        self.protection_resolver = protection_resolver
        self.batch_deleter = batch_deleter
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def evict(
        self, user_id: UUID, feed_id: UUID, settings: "RetentionSettings"
    ) -> EvictionOutcome:
        # Protection must be read before the snapshot and the delete
        protected_ids = await self.protection_resolver.resolve(user_id, feed_id)
        articles = await self.article_repo.list_articles(feed_id)

        delete_ids = select_evictions(
            articles,
            articles_per_feed=settings.articles_per_feed,
            unread_age_days=settings.unread_age_days,
            protected_ids=protected_ids,
            now=self.clock(),
        )

        logger.info(
            f"Selected {len(delete_ids)} of {len(articles)} articles for eviction",
            extra={
                "feed_id": str(feed_id),
                "article_count": len(articles),
                "protected_count": len(protected_ids),
                "eviction_count": len(delete_ids),
            },
        )

        return await self.batch_deleter.delete(delete_ids)
