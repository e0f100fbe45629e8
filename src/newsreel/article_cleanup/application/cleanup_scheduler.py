"""Scheduled global cleanup with overlap protection.

Only one scheduled run may be active at a time. Inside one process this is
enforced by an in-memory flag; across processes an optional distributed lock
can be supplied. An overlapping request is skipped, never queued.
"""

import time
from typing import TYPE_CHECKING, Optional

from newsreel.article_cleanup.domain.cleanup_result import ScheduledCleanupResult, TriggerType
from newsreel.main.log_context import bound_log_context, new_run_id
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.application.cleanup_service import ArticleCleanupService
    from newsreel.article_cleanup.infrastructure.cleanup_lock import CleanupRunLock

logger = get_logger(__name__)


class CleanupScheduler:
    def __init__(
        self,
        cleanup_service: "ArticleCleanupService",
        run_lock: Optional["CleanupRunLock"] = None,
    ):
        self.cleanup_service = cleanup_service
        self.run_lock = run_lock
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def run_scheduled_cleanup(self) -> ScheduledCleanupResult:
        # Check and set happen with no await in between
        if self._is_running:
            logger.info("Cleanup already in progress, skipping")
            return ScheduledCleanupResult(
                users_processed=0, total_deleted=0, duration_ms=0, skipped=True
            )
        self._is_running = True

        try:
            if self.run_lock is not None and not await self.run_lock.acquire():
                logger.info("Cleanup lock held by another worker, skipping")
                return ScheduledCleanupResult(
                    users_processed=0, total_deleted=0, duration_ms=0, skipped=True
                )

            try:
                return await self._run()
            finally:
                if self.run_lock is not None:
                    await self.run_lock.release()
        finally:
            self._is_running = False

    async def _run(self) -> ScheduledCleanupResult:
        start = time.monotonic()

        with bound_log_context(run_id=new_run_id(), trigger_type=TriggerType.SCHEDULED.value):
            logger.info("Starting scheduled article cleanup")

            try:
                result = await self.cleanup_service.cleanup_all(trigger=TriggerType.SCHEDULED)
            except Exception:
                logger.error("Scheduled article cleanup failed", exc_info=True)
                raise

            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info(
                f"Scheduled cleanup complete: {result.total_deleted} articles deleted "
                f"for {result.users_processed} users in {duration_ms}ms"
            )

            return ScheduledCleanupResult(
                users_processed=result.users_processed,
                total_deleted=result.total_deleted,
                duration_ms=duration_ms,
            )
