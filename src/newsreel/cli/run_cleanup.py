"""Run an article cleanup by hand.

Without arguments every user with feeds is cleaned through the scheduler, so
an overlapping run in this process is skipped the same way the cron job is.
With --user only that user is cleaned; adding --feed narrows it to one feed.

Usage:
    python -m newsreel.cli.run_cleanup [--user USER_ID] [--feed FEED_ID]
"""

import argparse
import asyncio
from typing import Optional, Sequence
from uuid import UUID

from newsreel.article_cleanup.domain.cleanup_result import TriggerType
from newsreel.database.database import sessionmanager
from newsreel.main.config import get_settings
from newsreel.main.container.container import Container
from newsreel.main.logging import get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete articles beyond retention limits")
    parser.add_argument("--user", type=UUID, help="Only clean this user's feeds")
    parser.add_argument("--feed", type=UUID, help="Only clean this feed (requires --user)")
    args = parser.parse_args(argv)

    if args.feed is not None and args.user is None:
        parser.error("--feed requires --user")

    return args


async def run_cleanup(
    container: Container, user_id: Optional[UUID] = None, feed_id: Optional[UUID] = None
) -> int:
    """Run the requested cleanup and return the number of deleted articles."""
    if user_id is None:
        result = await container.cleanup_scheduler().run_scheduled_cleanup()
        if result.skipped:
            logger.warning("Cleanup skipped, another run is in progress")
        else:
            logger.info(
                f"Cleanup complete: {result.total_deleted} articles deleted for "
                f"{result.users_processed} users in {result.duration_ms}ms"
            )
        return result.total_deleted

    cleanup_service = container.article_cleanup_service()
    if feed_id is not None:
        result = await cleanup_service.cleanup_feed(user_id, feed_id, trigger=TriggerType.MANUAL)
    else:
        result = await cleanup_service.cleanup_user(user_id, trigger=TriggerType.MANUAL)

    if result.error is not None:
        logger.error(f"Cleanup failed: {result.error}")
    else:
        logger.info(
            f"Cleanup complete: {result.articles_deleted} articles deleted in {result.duration_ms}ms"
        )
    return result.articles_deleted


async def _main(args: argparse.Namespace) -> int:
    settings = get_settings()
    sessionmanager.init(settings.database_url)

    try:
        return await run_cleanup(Container(), user_id=args.user, feed_id=args.feed)
    finally:
        await sessionmanager.close()


def main(argv: Optional[Sequence[str]] = None):
    """Entry point for CLI script."""
    args = parse_args(argv)
    try:
        deleted = asyncio.run(_main(args))
    except KeyboardInterrupt:
        logger.info("Cleanup interrupted by user")
        return
    except Exception as e:
        logger.error(f"Cleanup failed: {e}", exc_info=True)
        raise

    print(f"Deleted {deleted} articles")


if __name__ == "__main__":
    main()
