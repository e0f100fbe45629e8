from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class ArticleSnapshot:
    """The slice of an article the retention engine needs to rank and age it."""

    id: UUID
    feed_id: UUID
    created_at: datetime
    published_at: Optional[datetime] = None

    @property
    def effective_date(self) -> datetime:
        """Publication time, or ingestion time when the feed gave none. Always tz-aware."""
        value = self.published_at if self.published_at is not None else self.created_at
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
