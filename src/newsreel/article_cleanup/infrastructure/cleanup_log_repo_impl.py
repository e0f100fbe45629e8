from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa

from newsreel.article_cleanup.domain.cleanup_result import (
    CleanupLogEntry,
    CleanupLogFilter,
    CleanupLogRecord,
)
from newsreel.article_cleanup.domain.repositories import CleanupLogRepository
from newsreel.database.tables.cleanup_log_table import CleanupLog

if TYPE_CHECKING:
    from newsreel.database.database import DatabaseSessionManager


def _apply_filters(query: sa.Select, filters: CleanupLogFilter) -> sa.Select:
    if filters.user_id is not None:
        query = query.where(CleanupLog.user_id == filters.user_id)
    if filters.feed_id is not None:
        query = query.where(CleanupLog.feed_id == filters.feed_id)
    if filters.trigger_type is not None:
        query = query.where(CleanupLog.trigger_type == filters.trigger_type.value)
    return query


class CleanupLogRepoImpl(CleanupLogRepository):
    def __init__(self, session_manager: "DatabaseSessionManager"):
        self.session_manager = session_manager

    async def add(self, entry: CleanupLogEntry) -> None:
        stmt = sa.insert(CleanupLog).values(
            user_id=entry.user_id,
            feed_id=entry.feed_id,
            trigger_type=entry.trigger_type.value,
            articles_deleted=entry.articles_deleted,
            duration_ms=entry.duration_ms,
            error_message=entry.error_message,
        )

        async with self.session_manager.transaction() as session:
            await session.execute(stmt)

    async def list_page(
        self, filters: CleanupLogFilter, limit: int, offset: int
    ) -> list[CleanupLogRecord]:
        """Most recent first."""
        query = (
            _apply_filters(sa.select(CleanupLog), filters)
            .order_by(CleanupLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )

        async with self.session_manager.transaction() as session:
            result = await session.scalars(query)
            records = result.all()

        return [CleanupLogRecord.model_validate(record) for record in records]

    async def count(self, filters: CleanupLogFilter) -> int:
        query = _apply_filters(sa.select(sa.func.count()).select_from(CleanupLog), filters)

        async with self.session_manager.transaction() as session:
            result = await session.scalar(query)

        return result or 0

    async def list_since(self, since: datetime) -> list[CleanupLogRecord]:
        query = (
            sa.select(CleanupLog)
            .where(CleanupLog.created_at >= since)
            .order_by(CleanupLog.created_at.desc())
        )

        async with self.session_manager.transaction() as session:
            result = await session.scalars(query)
            records = result.all()

        return [CleanupLogRecord.model_validate(record) for record in records]

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = sa.delete(CleanupLog).where(CleanupLog.created_at < cutoff)

        async with self.session_manager.transaction() as session:
            result = await session.execute(stmt)

        return result.rowcount or 0
