"""In-memory stand-ins for the article cleanup repositories."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

from newsreel.article_cleanup.domain.article import ArticleSnapshot
from newsreel.article_cleanup.domain.cleanup_result import (
    CleanupLogEntry,
    CleanupLogFilter,
    CleanupLogRecord,
)
from newsreel.article_cleanup.domain.repositories import (
    ArticleRetentionRepository,
    CleanupLogRepository,
    RetentionSettingsRepository,
)
from newsreel.article_cleanup.domain.retention_settings import (
    RetentionSettingsUpdate,
    StoredRetentionSettings,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_articles(
    feed_id: UUID, count: int, now: datetime = NOW, step: timedelta = timedelta(days=1)
) -> list[ArticleSnapshot]:
    """Articles published at now, now - step, ... (most recent first)."""
    return [
        ArticleSnapshot(
            id=uuid4(),
            feed_id=feed_id,
            created_at=now - step * i,
            published_at=now - step * i,
        )
        for i in range(count)
    ]


class FakeArticleStore(ArticleRetentionRepository):
    """Articles, engagement and comments for any number of users and feeds.

    ``bulk_cleanup_result`` controls the engine-side path: None means the
    database function is not deployed, an int is returned as-is, and an
    exception instance is raised.
    """

    def __init__(self):
        self.articles: dict[UUID, ArticleSnapshot] = {}
        self.feeds: dict[UUID, UUID] = {}
        self.engaged: set[UUID] = set()
        self.commented: set[UUID] = set()

        self.bulk_cleanup_result: int | Exception | None = None
        self.bulk_cleanup_calls: list[tuple[UUID, int, int]] = []
        self.delete_calls: list[list[UUID]] = []
        self.failing_delete_calls: set[int] = set()
        self.protection_error: Optional[Exception] = None
        self.list_feeds_errors: dict[UUID, Exception] = {}
        self.list_articles_errors: dict[UUID, Exception] = {}

    def add_feed(self, user_id: UUID, articles: list[ArticleSnapshot] | None = None) -> UUID:
        feed_id = articles[0].feed_id if articles else uuid4()
        self.feeds[feed_id] = user_id
        for article in articles or []:
            self.articles[article.id] = article
        return feed_id

    def feed_article_ids(self, feed_id: UUID) -> set[UUID]:
        return {a.id for a in self.articles.values() if a.feed_id == feed_id}

    async def get_protected_article_ids(
        self, user_id: UUID, feed_id: Optional[UUID] = None
    ) -> list[UUID]:
        if self.protection_error is not None:
            raise self.protection_error
        return [
            article_id
            for article_id in self.engaged
            if article_id in self.articles
            and (feed_id is None or self.articles[article_id].feed_id == feed_id)
        ]

    async def get_commented_article_ids(self, feed_id: Optional[UUID] = None) -> list[UUID]:
        if self.protection_error is not None:
            raise self.protection_error
        return [
            article_id
            for article_id in self.commented
            if article_id in self.articles
            and (feed_id is None or self.articles[article_id].feed_id == feed_id)
        ]

    async def list_articles(self, feed_id: UUID) -> list[ArticleSnapshot]:
        if feed_id in self.list_articles_errors:
            raise self.list_articles_errors[feed_id]
        return sorted(
            (a for a in self.articles.values() if a.feed_id == feed_id),
            key=lambda a: a.effective_date,
            reverse=True,
        )

    async def bulk_cleanup(
        self, feed_id: UUID, capacity_limit: int, age_days: int
    ) -> Optional[int]:
        self.bulk_cleanup_calls.append((feed_id, capacity_limit, age_days))
        if isinstance(self.bulk_cleanup_result, Exception):
            raise self.bulk_cleanup_result
        return self.bulk_cleanup_result

    async def delete_articles(self, article_ids: list[UUID]) -> int:
        call_number = len(self.delete_calls)
        self.delete_calls.append(list(article_ids))
        if call_number in self.failing_delete_calls:
            raise RuntimeError(f"delete call {call_number} failed")

        deleted = 0
        for article_id in article_ids:
            if self.articles.pop(article_id, None) is not None:
                deleted += 1
        return deleted

    async def list_feed_ids(self, user_id: UUID) -> list[UUID]:
        if user_id in self.list_feeds_errors:
            raise self.list_feeds_errors[user_id]
        return [feed_id for feed_id, owner in self.feeds.items() if owner == user_id]

    async def list_users_with_feeds(self) -> list[UUID]:
        return list(dict.fromkeys(self.feeds.values()))


class FakeSettingsRepo(RetentionSettingsRepository):
    def __init__(self):
        self.rows: dict[UUID, StoredRetentionSettings] = {}
        self.error: Optional[Exception] = None
        self.upsert_calls: list[tuple[UUID, RetentionSettingsUpdate]] = []

    async def get(self, user_id: UUID) -> StoredRetentionSettings | None:
        if self.error is not None:
            raise self.error
        return self.rows.get(user_id)

    async def upsert(
        self, user_id: UUID, update: RetentionSettingsUpdate
    ) -> StoredRetentionSettings:
        self.upsert_calls.append((user_id, update))
        current = self.rows.get(user_id) or StoredRetentionSettings(
            user_id=user_id,
            articles_per_feed=100,
            unread_article_age_days=30,
            enable_auto_cleanup=True,
        )
        changes = {}
        if update.articles_per_feed is not None:
            changes["articles_per_feed"] = update.articles_per_feed
        if update.unread_age_days is not None:
            changes["unread_article_age_days"] = update.unread_age_days
        if update.auto_cleanup_enabled is not None:
            changes["enable_auto_cleanup"] = update.auto_cleanup_enabled

        row = current.model_copy(update=changes)
        self.rows[user_id] = row
        return row


class FakeCleanupLogRepo(CleanupLogRepository):
    def __init__(self):
        self.records: list[CleanupLogRecord] = []
        self.add_error: Optional[Exception] = None

    def insert(self, entry: CleanupLogEntry, created_at: datetime | None = None) -> CleanupLogRecord:
        record = CleanupLogRecord(
            **entry.model_dump(),
            id=uuid4(),
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.records.append(record)
        return record

    def _matching(self, filters: CleanupLogFilter) -> list[CleanupLogRecord]:
        return [
            r
            for r in sorted(self.records, key=lambda r: r.created_at, reverse=True)
            if (filters.user_id is None or r.user_id == filters.user_id)
            and (filters.feed_id is None or r.feed_id == filters.feed_id)
            and (filters.trigger_type is None or r.trigger_type == filters.trigger_type)
        ]

    async def add(self, entry: CleanupLogEntry) -> None:
        if self.add_error is not None:
            raise self.add_error
        self.insert(entry)

    async def list_page(
        self, filters: CleanupLogFilter, limit: int, offset: int
    ) -> list[CleanupLogRecord]:
        return self._matching(filters)[offset : offset + limit]

    async def count(self, filters: CleanupLogFilter) -> int:
        return len(self._matching(filters))

    async def list_since(self, since: datetime) -> list[CleanupLogRecord]:
        return [r for r in self.records if r.created_at >= since]

    async def delete_older_than(self, cutoff: datetime) -> int:
        before = len(self.records)
        self.records = [r for r in self.records if r.created_at >= cutoff]
        return before - len(self.records)
