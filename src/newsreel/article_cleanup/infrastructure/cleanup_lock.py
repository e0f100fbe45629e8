"""Cross-process lease for the scheduled cleanup run.

Uses atomic SET NX with a TTL, so a crashed holder frees the lease once the
TTL expires. Release only deletes the key if this process still owns it.
"""

from __future__ import annotations

import os
import socket
from typing import TYPE_CHECKING
from uuid import uuid4

from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = get_logger(__name__)


RELEASE_LOCK_SCRIPT = (
    # KEYS[1]: lock key
    # ARGV[1]: expected owner
    #
    # Returns 1 if released, 0 if the lock is held by someone else or gone.
    "if redis.call('GET', KEYS[1]) == ARGV[1] then\n"
    "    return redis.call('DEL', KEYS[1])\n"
    "end\n"
    "return 0\n"
)


def default_owner_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid4().hex[:8]}"


class CleanupRunLock:
    """Redis lease guarding the scheduled cleanup across workers.

    Args:
        redis_client: Async Redis connection.
        lock_key: Redis key for the lease.
        ttl_seconds: Lease expiry, should exceed a normal run.
        owner_id: Identifier stored as the lease value.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        lock_key: str = "article_cleanup:run_lock",
        ttl_seconds: int = 900,
        owner_id: str | None = None,
    ) -> None:
        self._redis = redis_client
        self._lock_key = lock_key
        self._ttl = ttl_seconds
        self._owner_id = owner_id or default_owner_id()
        self._release_script = redis_client.register_script(RELEASE_LOCK_SCRIPT)

    @property
    def owner_id(self) -> str:
        return self._owner_id

    async def acquire(self) -> bool:
        """Try to take the lease.

        Returns:
            True if acquired. False if another worker holds it or Redis failed.
        """
        try:
            acquired = await self._redis.set(
                self._lock_key,
                self._owner_id,
                nx=True,
                ex=self._ttl,
            )
        except Exception as exc:
            logger.warning(
                "Failed to acquire cleanup lock",
                extra={"error": str(exc), "lock_key": self._lock_key},
            )
            return False

        return bool(acquired)

    async def release(self) -> bool:
        try:
            result = await self._release_script(keys=[self._lock_key], args=[self._owner_id])
        except Exception as exc:
            logger.warning(
                "Failed to release cleanup lock",
                extra={"error": str(exc), "lock_key": self._lock_key},
            )
            return False

        return result == 1
