import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel

from newsreel.article_cleanup.domain.cleanup_result import TriggerType
from newsreel.main.config import get_settings
from newsreel.main.container.container import Container
from newsreel.main.logging import get_logger
from newsreel.worker.worker import Worker

logger = get_logger(__name__)
worker = Worker()
_settings = get_settings()


class ManualCleanupParams(BaseModel):
    user_id: UUID
    feed_id: Optional[UUID] = None


@worker.cron_job(hour=_settings.cleanup_cron_hour, minute=_settings.cleanup_cron_minute)
async def scheduled_article_cleanup(container: Container) -> Dict[str, Any]:
    """
    Daily cleanup of old articles for every user with feeds.

    Run-log purging happens afterwards in its own transaction so that a
    failure there does not hide the cleanup result.

    Returns:
        Summary dictionary. ``success`` is False only when the run itself
        failed; per-feed and per-user failures are in the run log.
    """
    scheduler = container.cleanup_scheduler()
    start = time.monotonic()

    logger.info("Starting scheduled article cleanup job")

    try:
        result = await scheduler.run_scheduled_cleanup()
    except Exception as e:
        error_msg = f"Scheduled article cleanup failed: {str(e)}"
        logger.error(error_msg, exc_info=True)
        return {
            "success": False,
            "error": str(e),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    if not result.skipped:
        retention_days = container.settings().cleanup_log_retention_days
        try:
            await container.cleanup_log_service().purge_old_logs(days=retention_days)
        except Exception as e:
            logger.warning(f"Failed to purge old cleanup logs: {str(e)}", exc_info=True)

    duration_ms = int((time.monotonic() - start) * 1000)

    if result.skipped:
        logger.info("Scheduled article cleanup skipped, another run is in progress")
    else:
        logger.info(
            f"Scheduled article cleanup completed: deleted {result.total_deleted} articles "
            f"for {result.users_processed} users in {duration_ms}ms"
        )

    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "duration_ms": duration_ms,
        "results": {
            "users_processed": result.users_processed,
            "articles_deleted": result.total_deleted,
            "cleanup_duration_ms": result.duration_ms,
            "skipped": result.skipped,
        },
    }


@worker.function()
async def manual_article_cleanup(
    job_id: Optional[str], params: ManualCleanupParams, container: Container
) -> Dict[str, Any]:
    """Operator-requested cleanup of one user, or one feed of that user."""
    cleanup_service = container.article_cleanup_service()

    if params.feed_id is not None:
        result = await cleanup_service.cleanup_feed(
            params.user_id, params.feed_id, trigger=TriggerType.MANUAL
        )
    else:
        result = await cleanup_service.cleanup_user(params.user_id, trigger=TriggerType.MANUAL)

    logger.info(
        f"Manual article cleanup deleted {result.articles_deleted} articles",
        extra={"job_id": job_id, "user_id": str(params.user_id)},
    )

    return {
        "success": result.error is None,
        "articles_deleted": result.articles_deleted,
        "duration_ms": result.duration_ms,
        "error": result.error,
    }
