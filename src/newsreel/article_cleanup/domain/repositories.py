from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

if TYPE_CHECKING:
    from newsreel.article_cleanup.domain.article import ArticleSnapshot
    from newsreel.article_cleanup.domain.cleanup_result import (
        CleanupLogEntry,
        CleanupLogFilter,
        CleanupLogRecord,
    )
    from newsreel.article_cleanup.domain.retention_settings import (
        RetentionSettingsUpdate,
        StoredRetentionSettings,
    )


class RetentionSettingsRepository(ABC):
    """Abstract repository for per-user retention settings."""

    @abstractmethod
    async def get(self, user_id: UUID) -> "StoredRetentionSettings | None": ...

    @abstractmethod
    async def upsert(
        self, user_id: UUID, update: "RetentionSettingsUpdate"
    ) -> "StoredRetentionSettings": ...


class ArticleRetentionRepository(ABC):
    """Abstract repository for everything the cleanup engine reads or deletes."""

    @abstractmethod
    async def get_protected_article_ids(
        self, user_id: UUID, feed_id: Optional[UUID] = None
    ) -> list[UUID]:
        """Articles read or starred by any user, optionally scoped to one feed."""

    @abstractmethod
    async def get_commented_article_ids(self, feed_id: Optional[UUID] = None) -> list[UUID]:
        """Articles with at least one comment, optionally scoped to one feed."""

    @abstractmethod
    async def list_articles(self, feed_id: UUID) -> list["ArticleSnapshot"]:
        """All articles of a feed, most recent effective date first."""

    @abstractmethod
    async def bulk_cleanup(
        self, feed_id: UUID, capacity_limit: int, age_days: int
    ) -> Optional[int]:
        """Run the engine-side cleanup. Returns None when it is not deployed."""

    @abstractmethod
    async def delete_articles(self, article_ids: list[UUID]) -> int: ...

    @abstractmethod
    async def list_feed_ids(self, user_id: UUID) -> list[UUID]: ...

    @abstractmethod
    async def list_users_with_feeds(self) -> list[UUID]: ...


class CleanupLogRepository(ABC):
    """Abstract repository for the append-only cleanup run log."""

    @abstractmethod
    async def add(self, entry: "CleanupLogEntry") -> None: ...

    @abstractmethod
    async def list_page(
        self, filters: "CleanupLogFilter", limit: int, offset: int
    ) -> list["CleanupLogRecord"]: ...

    @abstractmethod
    async def count(self, filters: "CleanupLogFilter") -> int: ...

    @abstractmethod
    async def list_since(self, since: datetime) -> list["CleanupLogRecord"]: ...

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int: ...
