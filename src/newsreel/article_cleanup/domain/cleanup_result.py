from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TriggerType(str, Enum):
    SYNC = "sync"
    SCHEDULED = "scheduled"
    MANUAL = "manual"


@dataclass(frozen=True)
class CleanupRunResult:
    """Outcome of one feed- or user-scope cleanup."""

    articles_deleted: int
    duration_ms: int
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GlobalCleanupResult:
    users_processed: int
    total_deleted: int


@dataclass(frozen=True)
class ScheduledCleanupResult:
    users_processed: int
    total_deleted: int
    duration_ms: int
    skipped: bool = False


class CleanupLogEntry(BaseModel):
    """Row appended to the run log for every feed-scope invocation."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    feed_id: Optional[UUID] = None
    trigger_type: TriggerType
    articles_deleted: int = Field(ge=0)
    duration_ms: int = Field(ge=0)
    error_message: Optional[str] = None


class CleanupLogRecord(CleanupLogEntry):
    """A persisted run-log row."""

    id: UUID
    created_at: datetime


class CleanupLogFilter(BaseModel):
    user_id: Optional[UUID] = None
    feed_id: Optional[UUID] = None
    trigger_type: Optional[TriggerType] = None


class CleanupLogPage(BaseModel):
    logs: list[CleanupLogRecord]
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    filters: CleanupLogFilter


class TriggerTypeStats(BaseModel):
    count: int = 0
    deleted: int = 0


class CleanupStats(BaseModel):
    period_hours: int
    total_operations: int
    total_deletions: int
    average_duration_ms: float
    error_count: int
    error_rate: float
    by_trigger_type: dict[TriggerType, TriggerTypeStats]
