"""Run log for article cleanup.

Appending is best-effort: a failure to write the log is logged and swallowed
so that observability can never fail a cleanup.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from newsreel.article_cleanup.constants import (
    DEFAULT_LOG_PAGE_SIZE,
    DEFAULT_LOG_RETENTION_DAYS,
    MAX_LOG_PAGE_SIZE,
)
from newsreel.article_cleanup.domain.cleanup_result import (
    CleanupLogEntry,
    CleanupLogFilter,
    CleanupLogPage,
    CleanupStats,
    TriggerType,
    TriggerTypeStats,
)
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.domain.repositories import CleanupLogRepository

logger = get_logger(__name__)


class CleanupLogService:
    def __init__(self, log_repo: "CleanupLogRepository"):
        self.log_repo = log_repo

    async def append(self, entry: CleanupLogEntry) -> None:
        try:
            await self.log_repo.add(entry)
        except Exception as exc:
            logger.warning(
                "Failed to write cleanup log entry (non-fatal)",
                extra={"entry": entry.model_dump(mode="json"), "error": str(exc)},
                exc_info=True,
            )
            return

        logger.debug(
            "Cleanup logged",
            extra={
                "articles_deleted": entry.articles_deleted,
                "duration_ms": entry.duration_ms,
                "failed": entry.error_message is not None,
            },
        )

    async def list_logs(
        self,
        page: int = 1,
        limit: int = DEFAULT_LOG_PAGE_SIZE,
        user_id: Optional[UUID] = None,
        feed_id: Optional[UUID] = None,
        trigger_type: Optional[TriggerType] = None,
    ) -> CleanupLogPage:
        """Newest-first page of run-log rows.

        ``page`` is clamped to at least 1 and ``limit`` to [1, MAX_LOG_PAGE_SIZE].
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_LOG_PAGE_SIZE)
        filters = CleanupLogFilter(user_id=user_id, feed_id=feed_id, trigger_type=trigger_type)

        total = await self.log_repo.count(filters)
        logs = await self.log_repo.list_page(filters, limit=limit, offset=(page - 1) * limit)
        total_pages = math.ceil(total / limit) if total else 0

        return CleanupLogPage(
            logs=logs,
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            filters=filters,
        )

    async def get_stats(self, hours: int = 24) -> CleanupStats:
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        records = await self.log_repo.list_since(since)

        by_trigger_type = {trigger: TriggerTypeStats() for trigger in TriggerType}
        error_count = 0
        total_deletions = 0
        total_duration = 0

        for record in records:
            stats = by_trigger_type[record.trigger_type]
            stats.count += 1
            stats.deleted += record.articles_deleted
            total_deletions += record.articles_deleted
            total_duration += record.duration_ms
            if record.error_message is not None:
                error_count += 1

        total_operations = len(records)

        return CleanupStats(
            period_hours=hours,
            total_operations=total_operations,
            total_deletions=total_deletions,
            average_duration_ms=(total_duration / total_operations) if total_operations else 0.0,
            error_count=error_count,
            error_rate=(error_count / total_operations) if total_operations else 0.0,
            by_trigger_type=by_trigger_type,
        )

    async def purge_old_logs(self, days: int = DEFAULT_LOG_RETENTION_DAYS) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        purged = await self.log_repo.delete_older_than(cutoff)

        if purged > 0:
            logger.info(f"Purged {purged} cleanup log entries older than {days} days")
        else:
            logger.debug("No cleanup log entries to purge")

        return purged
