"""Unit tests for the manual cleanup CLI."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from newsreel.article_cleanup.domain.cleanup_result import (
    CleanupRunResult,
    ScheduledCleanupResult,
    TriggerType,
)
from newsreel.cli.run_cleanup import parse_args, run_cleanup


@pytest.fixture
def container():
    container = MagicMock()
    scheduler = container.cleanup_scheduler.return_value
    scheduler.run_scheduled_cleanup = AsyncMock(
        return_value=ScheduledCleanupResult(users_processed=2, total_deleted=15, duration_ms=40)
    )
    service = container.article_cleanup_service.return_value
    service.cleanup_user = AsyncMock(return_value=CleanupRunResult(articles_deleted=4, duration_ms=3))
    service.cleanup_feed = AsyncMock(return_value=CleanupRunResult(articles_deleted=1, duration_ms=1))
    return container


def test_feed_requires_user():
    with pytest.raises(SystemExit):
        parse_args(["--feed", str(uuid4())])


def test_parses_uuids():
    user_id = uuid4()

    args = parse_args(["--user", str(user_id)])

    assert args.user == user_id
    assert args.feed is None


async def test_without_user_runs_everyone_through_scheduler(container):
    deleted = await run_cleanup(container)

    assert deleted == 15
    container.cleanup_scheduler.return_value.run_scheduled_cleanup.assert_awaited_once()


async def test_user_cleanup_is_manual(container):
    user_id = uuid4()

    deleted = await run_cleanup(container, user_id=user_id)

    assert deleted == 4
    container.article_cleanup_service.return_value.cleanup_user.assert_awaited_once_with(
        user_id, trigger=TriggerType.MANUAL
    )


async def test_feed_cleanup(container):
    user_id, feed_id = uuid4(), uuid4()

    deleted = await run_cleanup(container, user_id=user_id, feed_id=feed_id)

    assert deleted == 1
    container.article_cleanup_service.return_value.cleanup_feed.assert_awaited_once_with(
        user_id, feed_id, trigger=TriggerType.MANUAL
    )
