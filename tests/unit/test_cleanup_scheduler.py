"""Unit tests for CleanupScheduler overlap protection."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from newsreel.article_cleanup.application.cleanup_scheduler import CleanupScheduler
from newsreel.article_cleanup.domain.cleanup_result import GlobalCleanupResult, TriggerType


@pytest.fixture
def cleanup_service():
    service = MagicMock()
    service.cleanup_all = AsyncMock(
        return_value=GlobalCleanupResult(users_processed=4, total_deleted=120)
    )
    return service


@pytest.fixture
def run_lock():
    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock(return_value=True)
    return lock


async def test_runs_global_cleanup_with_scheduled_trigger(cleanup_service):
    scheduler = CleanupScheduler(cleanup_service)

    result = await scheduler.run_scheduled_cleanup()

    assert result.users_processed == 4
    assert result.total_deleted == 120
    assert result.skipped is False
    cleanup_service.cleanup_all.assert_awaited_once_with(trigger=TriggerType.SCHEDULED)
    assert scheduler.is_running is False


async def test_overlapping_run_is_skipped(cleanup_service):
    """Two concurrent triggers: one runs, the other returns a zero result at once."""
    started = asyncio.Event()
    finish = asyncio.Event()

    async def slow_cleanup_all(trigger):
        started.set()
        await finish.wait()
        return GlobalCleanupResult(users_processed=1, total_deleted=3)

    cleanup_service.cleanup_all = AsyncMock(side_effect=slow_cleanup_all)
    scheduler = CleanupScheduler(cleanup_service)

    first = asyncio.create_task(scheduler.run_scheduled_cleanup())
    await started.wait()
    second = await scheduler.run_scheduled_cleanup()
    finish.set()
    first_result = await first

    assert second.skipped is True
    assert (second.users_processed, second.total_deleted, second.duration_ms) == (0, 0, 0)
    assert first_result.total_deleted == 3
    assert cleanup_service.cleanup_all.await_count == 1


async def test_gathered_triggers_run_once(cleanup_service):
    async def yielding_cleanup_all(trigger):
        await asyncio.sleep(0.01)
        return GlobalCleanupResult(users_processed=1, total_deleted=3)

    cleanup_service.cleanup_all = AsyncMock(side_effect=yielding_cleanup_all)
    scheduler = CleanupScheduler(cleanup_service)

    results = await asyncio.gather(*(scheduler.run_scheduled_cleanup() for _ in range(5)))

    assert sum(1 for r in results if not r.skipped) == 1
    assert cleanup_service.cleanup_all.await_count == 1


async def test_guard_is_released_after_failure(cleanup_service):
    cleanup_service.cleanup_all = AsyncMock(
        side_effect=[
            ConnectionError("db down"),
            GlobalCleanupResult(users_processed=0, total_deleted=0),
        ]
    )
    scheduler = CleanupScheduler(cleanup_service)

    with pytest.raises(ConnectionError):
        await scheduler.run_scheduled_cleanup()

    assert scheduler.is_running is False
    result = await scheduler.run_scheduled_cleanup()
    assert result.skipped is False


async def test_lock_held_elsewhere_skips_run(cleanup_service, run_lock):
    run_lock.acquire.return_value = False
    scheduler = CleanupScheduler(cleanup_service, run_lock=run_lock)

    result = await scheduler.run_scheduled_cleanup()

    assert result.skipped is True
    cleanup_service.cleanup_all.assert_not_awaited()
    run_lock.release.assert_not_awaited()
    assert scheduler.is_running is False


async def test_lock_is_released_after_run(cleanup_service, run_lock):
    scheduler = CleanupScheduler(cleanup_service, run_lock=run_lock)

    await scheduler.run_scheduled_cleanup()

    run_lock.acquire.assert_awaited_once()
    run_lock.release.assert_awaited_once()


async def test_lock_is_released_after_failure(cleanup_service, run_lock):
    cleanup_service.cleanup_all = AsyncMock(side_effect=RuntimeError("boom"))
    scheduler = CleanupScheduler(cleanup_service, run_lock=run_lock)

    with pytest.raises(RuntimeError):
        await scheduler.run_scheduled_cleanup()

    run_lock.release.assert_awaited_once()
