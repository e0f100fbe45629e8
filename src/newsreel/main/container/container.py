from typing import TYPE_CHECKING, Optional

import redis.asyncio as aioredis
from dependency_injector import containers, providers

from newsreel.article_cleanup.application.batch_deleter import BatchDeleter
from newsreel.article_cleanup.application.cleanup_log_service import CleanupLogService
from newsreel.article_cleanup.application.cleanup_scheduler import CleanupScheduler
from newsreel.article_cleanup.application.cleanup_service import ArticleCleanupService
from newsreel.article_cleanup.application.eviction_strategies import (
    ClientSideEviction,
    EngineSideEviction,
)
from newsreel.article_cleanup.application.protection_resolver import ProtectionResolver
from newsreel.article_cleanup.application.retention_settings_service import (
    RetentionSettingsService,
)
from newsreel.article_cleanup.application.settings_resolver import RetentionSettingsResolver
from newsreel.article_cleanup.domain.retention_settings import RetentionLimits, RetentionSettings
from newsreel.article_cleanup.infrastructure.article_retention_repo_impl import (
    ArticleRetentionRepoImpl,
)
from newsreel.article_cleanup.infrastructure.cleanup_lock import CleanupRunLock
from newsreel.article_cleanup.infrastructure.cleanup_log_repo_impl import CleanupLogRepoImpl
from newsreel.article_cleanup.infrastructure.retention_settings_repo_impl import (
    RetentionSettingsRepoImpl,
)
from newsreel.database.database import sessionmanager
from newsreel.main.config import get_settings

if TYPE_CHECKING:
    from newsreel.main.config import Settings


def _create_redis_client(settings: "Settings") -> aioredis.Redis:
    pool = aioredis.ConnectionPool.from_url(
        f"redis://{settings.redis_host}:{settings.redis_port}"
    )
    return aioredis.Redis(connection_pool=pool)


def _create_run_lock(
    settings: "Settings", redis_client: providers.Provider
) -> Optional[CleanupRunLock]:
    if not settings.cleanup_distributed_lock_enabled:
        return None

    return CleanupRunLock(
        redis_client=redis_client(),
        lock_key=settings.cleanup_lock_key,
        ttl_seconds=settings.cleanup_lock_ttl_seconds,
    )


def _retention_defaults(settings: "Settings") -> RetentionSettings:
    return RetentionSettings(
        articles_per_feed=settings.default_articles_per_feed,
        unread_age_days=settings.default_unread_age_days,
    )


def _retention_limits(settings: "Settings") -> RetentionLimits:
    return RetentionLimits(
        min_articles_per_feed=settings.min_articles_per_feed,
        max_articles_per_feed=settings.max_articles_per_feed,
        min_unread_age_days=settings.min_unread_age_days,
        max_unread_age_days=settings.max_unread_age_days,
    )


class Container(containers.DeclarativeContainer):
    settings = providers.Callable(get_settings)
    session_manager = providers.Object(sessionmanager)

    redis_client = providers.Singleton(_create_redis_client, settings=settings)

    # Repositories
    retention_settings_repo = providers.Singleton(
        RetentionSettingsRepoImpl, session_manager=session_manager
    )
    article_retention_repo = providers.Singleton(
        ArticleRetentionRepoImpl, session_manager=session_manager
    )
    cleanup_log_repo = providers.Singleton(CleanupLogRepoImpl, session_manager=session_manager)

    # Retention settings
    retention_defaults = providers.Singleton(_retention_defaults, settings=settings)
    retention_limits = providers.Singleton(_retention_limits, settings=settings)
    retention_settings_resolver = providers.Singleton(
        RetentionSettingsResolver,
        settings_repo=retention_settings_repo,
        defaults=retention_defaults,
    )
    retention_settings_service = providers.Factory(
        RetentionSettingsService,
        settings_repo=retention_settings_repo,
        defaults=retention_defaults,
        limits=retention_limits,
    )

    # Eviction
    protection_resolver = providers.Singleton(
        ProtectionResolver,
        article_repo=article_retention_repo,
        fail_closed=settings.provided.cleanup_protection_fail_closed,
    )
    batch_deleter = providers.Singleton(
        BatchDeleter,
        article_repo=article_retention_repo,
        batch_size=settings.provided.cleanup_delete_batch_size,
    )
    engine_side_eviction = providers.Singleton(
        EngineSideEviction,
        article_repo=article_retention_repo,
        enabled=settings.provided.cleanup_fast_path_enabled,
    )
    client_side_eviction = providers.Singleton(
        ClientSideEviction,
        article_repo=article_retention_repo,
        protection_resolver=protection_resolver,
        batch_deleter=batch_deleter,
    )

    # Cleanup
    cleanup_log_service = providers.Singleton(CleanupLogService, log_repo=cleanup_log_repo)
    article_cleanup_service = providers.Singleton(
        ArticleCleanupService,
        settings_resolver=retention_settings_resolver,
        strategies=providers.List(engine_side_eviction, client_side_eviction),
        article_repo=article_retention_repo,
        run_log=cleanup_log_service,
        feed_timeout_seconds=settings.provided.cleanup_feed_timeout_seconds,
    )
    cleanup_run_lock = providers.Singleton(
        _create_run_lock, settings=settings, redis_client=redis_client.provider
    )
    cleanup_scheduler = providers.Singleton(
        CleanupScheduler,
        cleanup_service=article_cleanup_service,
        run_lock=cleanup_run_lock,
    )
