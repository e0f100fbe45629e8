"""Article cleanup orchestration at feed, user and global scope.

Feed scope resolves the user's retention settings, tries each eviction
strategy in order until one is available, and records the outcome in the run
log. Errors are contained as close to their source as possible:

- a failing feed is logged and reported in its own result, sibling feeds run;
- a failing user is skipped, sibling users run;
- nothing raised inside the engine escapes cleanup_feed().
"""

import asyncio
import time
from typing import TYPE_CHECKING, Optional, Sequence
from uuid import UUID

from newsreel.article_cleanup.application.eviction_strategies import EVICTION_UNAVAILABLE
from newsreel.article_cleanup.domain.cleanup_result import (
    CleanupLogEntry,
    CleanupRunResult,
    GlobalCleanupResult,
    TriggerType,
)
from newsreel.article_cleanup.domain.exceptions import CleanupError, FeedCleanupTimeoutError
from newsreel.main.log_context import bound_log_context
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.application.cleanup_log_service import CleanupLogService
    from newsreel.article_cleanup.application.eviction_strategies import EvictionStrategy
    from newsreel.article_cleanup.application.settings_resolver import (
        RetentionSettingsResolver,
    )
    from newsreel.article_cleanup.domain.repositories import ArticleRetentionRepository
    from newsreel.article_cleanup.domain.retention_settings import RetentionSettings

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class ArticleCleanupService:
    """Orchestrates article eviction.

    Args:
        settings_resolver: Loads each user's retention settings.
        strategies: Eviction strategies, tried in order. A strategy returning
            EVICTION_UNAVAILABLE hands over to the next one; any other
            outcome, including an exception, is final.
        article_repo: Enumerates feeds and users.
        run_log: Best-effort sink for per-feed outcomes.
        feed_timeout_seconds: Optional wall-clock bound for one feed.
    """

    def __init__(
        self,
        settings_resolver: "RetentionSettingsResolver",
        strategies: Sequence["EvictionStrategy"],
        article_repo: "ArticleRetentionRepository",
        run_log: "CleanupLogService",
        feed_timeout_seconds: Optional[float] = None,
    ):
        if not strategies:
            raise ValueError("At least one eviction strategy is required")
        self.settings_resolver = settings_resolver
        self.strategies = list(strategies)
        self.article_repo = article_repo
        self.run_log = run_log
        self.feed_timeout_seconds = feed_timeout_seconds

    async def cleanup_feed(
        self,
        user_id: UUID,
        feed_id: UUID,
        trigger: TriggerType = TriggerType.SYNC,
    ) -> CleanupRunResult:
        """Evict one feed's articles according to the user's retention settings.

        Never raises. A failure is logged, recorded in the run log and
        returned in ``CleanupRunResult.error`` with zero deleted articles.
        """
        start = time.monotonic()

        with bound_log_context(user_id=str(user_id), feed_id=str(feed_id), trigger_type=trigger.value):
            try:
                settings = await self.settings_resolver.resolve(user_id)

                if not settings.auto_cleanup_enabled:
                    logger.info("Auto-cleanup disabled for user, skipping feed")
                    return await self._finish(user_id, feed_id, trigger, start, deleted=0)

                deleted = await self._evict_with_timeout(user_id, feed_id, settings)

            except Exception as exc:
                error_message = str(exc) or type(exc).__name__
                logger.error(
                    "Feed cleanup failed",
                    extra={"error": error_message},
                    exc_info=True,
                )
                return await self._finish(
                    user_id, feed_id, trigger, start, deleted=0, error=error_message
                )

            return await self._finish(user_id, feed_id, trigger, start, deleted=deleted)

    async def _evict_with_timeout(
        self, user_id: UUID, feed_id: UUID, settings: "RetentionSettings"
    ) -> int:
        if self.feed_timeout_seconds is None:
            return await self._evict(user_id, feed_id, settings)

        try:
            return await asyncio.wait_for(
                self._evict(user_id, feed_id, settings), timeout=self.feed_timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise FeedCleanupTimeoutError(
                f"Feed cleanup exceeded {self.feed_timeout_seconds}s"
            ) from exc

    async def _evict(self, user_id: UUID, feed_id: UUID, settings: "RetentionSettings") -> int:
        logger.debug(
            "Evicting feed articles",
            extra={
                "articles_per_feed": settings.articles_per_feed,
                "unread_age_days": settings.unread_age_days,
            },
        )

        for strategy in self.strategies:
            outcome = await strategy.evict(user_id, feed_id, settings)
            if outcome is EVICTION_UNAVAILABLE:
                continue

            logger.info(
                f"Feed cleanup deleted {outcome} articles",
                extra={"strategy": strategy.name, "articles_deleted": outcome},
            )
            return outcome

        raise CleanupError("No eviction strategy is available")

    async def _finish(
        self,
        user_id: UUID,
        feed_id: UUID,
        trigger: TriggerType,
        start: float,
        deleted: int,
        error: Optional[str] = None,
    ) -> CleanupRunResult:
        duration_ms = _elapsed_ms(start)
        await self.run_log.append(
            CleanupLogEntry(
                user_id=user_id,
                feed_id=feed_id,
                trigger_type=trigger,
                articles_deleted=deleted,
                duration_ms=duration_ms,
                error_message=error,
            )
        )
        return CleanupRunResult(articles_deleted=deleted, duration_ms=duration_ms, error=error)

    async def cleanup_user(
        self, user_id: UUID, trigger: TriggerType = TriggerType.MANUAL
    ) -> CleanupRunResult:
        """Clean every feed of a user, one after another.

        Feed failures are visible in the per-feed run log only; the aggregate
        carries an error solely when the feeds could not be listed.
        """
        start = time.monotonic()

        with bound_log_context(user_id=str(user_id), trigger_type=trigger.value):
            try:
                feed_ids = await self.article_repo.list_feed_ids(user_id)
            except Exception as exc:
                logger.error("Failed to list feeds for user", exc_info=True)
                return CleanupRunResult(
                    articles_deleted=0,
                    duration_ms=_elapsed_ms(start),
                    error=str(exc) or type(exc).__name__,
                )

            if not feed_ids:
                logger.info("User has no feeds, skipping cleanup")
                return CleanupRunResult(articles_deleted=0, duration_ms=_elapsed_ms(start))

            total_deleted = 0
            failed_feeds = 0

            for feed_id in feed_ids:
                try:
                    result = await self.cleanup_feed(user_id, feed_id, trigger=trigger)
                except Exception:
                    failed_feeds += 1
                    logger.error(
                        "Unexpected error cleaning feed",
                        extra={"failed_feed_id": str(feed_id)},
                        exc_info=True,
                    )
                    continue

                total_deleted += result.articles_deleted
                if result.error is not None:
                    failed_feeds += 1

            duration_ms = _elapsed_ms(start)
            logger.info(
                f"User cleanup complete: {total_deleted} articles deleted across "
                f"{len(feed_ids) - failed_feeds}/{len(feed_ids)} feeds in {duration_ms}ms",
                extra={"feed_count": len(feed_ids), "failed_feeds": failed_feeds},
            )
            if failed_feeds:
                logger.warning(f"{failed_feeds} feeds failed cleanup")

            return CleanupRunResult(articles_deleted=total_deleted, duration_ms=duration_ms)

    async def cleanup_all(self, trigger: TriggerType = TriggerType.SCHEDULED) -> GlobalCleanupResult:
        """Clean every user that owns at least one feed.

        A user whose cleanup raises or reports an error is not counted in
        ``users_processed``; the remaining users still run. Failing to list
        users at all is left to the caller.
        """
        user_ids = await self.article_repo.list_users_with_feeds()
        logger.info(f"Starting cleanup for {len(user_ids)} users with feeds")

        users_processed = 0
        total_deleted = 0

        for user_id in user_ids:
            try:
                result = await self.cleanup_user(user_id, trigger=trigger)
            except Exception:
                logger.error(
                    "Unexpected error cleaning user",
                    extra={"failed_user_id": str(user_id)},
                    exc_info=True,
                )
                continue

            total_deleted += result.articles_deleted
            if result.error is None:
                users_processed += 1
            else:
                logger.error(
                    "User cleanup failed",
                    extra={"failed_user_id": str(user_id), "error": result.error},
                )

        failed_users = len(user_ids) - users_processed
        logger.info(
            f"All users cleanup complete: {total_deleted} articles deleted across "
            f"{users_processed}/{len(user_ids)} users"
        )
        if failed_users:
            logger.warning(f"{failed_users} users failed cleanup")

        return GlobalCleanupResult(users_processed=users_processed, total_deleted=total_deleted)

    async def cleanup_after_sync(self, user_id: UUID, feed_id: UUID) -> Optional[CleanupRunResult]:
        """Feed-sync hook. A cleanup problem must never fail the sync that triggered it."""
        try:
            return await self.cleanup_feed(user_id, feed_id, trigger=TriggerType.SYNC)
        except Exception:
            logger.error(
                "Cleanup after feed sync failed",
                extra={"user_id": str(user_id), "feed_id": str(feed_id)},
                exc_info=True,
            )
            return None
