"""
Revocation store backends for logged-out tokens.

Entries carry a time-to-live equal to the token's remaining lifetime, so the
set never outgrows the tokens that could still be presented.

Configure via settings:
    REVOCATION_BACKEND=memory|redis  (default: memory)
    REDIS_URL=redis://localhost:6379/0
"""

import heapq
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from microblog.core.config import settings
from microblog.core.exceptions import DependencyUnavailableError
from microblog.utils.clock import utc_now

logger = logging.getLogger(__name__)

# Key prefix for Redis to avoid collisions
REDIS_KEY_PREFIX = "microblog:revoked:"
REVOKED_MARKER = "blacklisted"


class RevocationStore(ABC):
    """Key/marker storage with per-entry expiry."""

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True while an unexpired entry for ``key`` is present."""
        ...


class MemoryRevocationStore(RevocationStore):
    """
    In-process store.
    Suitable for development, tests and single-process deployments.
    Entries are lost on restart.

    Expiry times are also kept in a min-heap, so every write sweeps the
    entries whose TTL has passed.
    """

    def __init__(self, clock=utc_now):
        self._entries: Dict[str, Tuple[str, datetime]] = {}
        self._expiry_heap: List[Tuple[datetime, str]] = []
        self._clock = clock

    def _is_expired(self, expires_at: datetime) -> bool:
        return self._clock() >= expires_at

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self.cleanup_expired()
        if ttl_seconds <= 0:
            return
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = (value, expires_at)
        heapq.heappush(self._expiry_heap, (expires_at, key))

    async def exists(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._is_expired(entry[1]):
            # Remove expired entry
            self._entries.pop(key, None)
            return False
        return True

    def cleanup_expired(self) -> int:
        """Remove expired entries, returning how many were dropped"""
        removed = 0
        while self._expiry_heap and self._is_expired(self._expiry_heap[0][0]):
            expires_at, key = heapq.heappop(self._expiry_heap)
            entry = self._entries.get(key)
            # a re-put of the same key leaves an older heap item behind
            if entry is not None and entry[1] == expires_at:
                del self._entries[key]
                removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Clear all entries"""
        self._entries.clear()
        self._expiry_heap.clear()


class RedisRevocationStore(RevocationStore):
    """
    Redis-backed store shared by every API process.

    Uses Redis key expiry, so nothing needs sweeping. Status is read from
    Redis on every check; nothing is cached in-process.
    """

    def __init__(self, redis_url: Optional[str] = None, client=None):
        if client is None:
            client = aioredis.Redis.from_url(
                redis_url or settings.REDIS_URL,
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
                socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            )
        self._client = client

    def _key(self, key: str) -> str:
        return f"{REDIS_KEY_PREFIX}{key}"

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            await self._client.set(self._key(key), value, ex=ttl_seconds)
        except RedisError as e:
            logger.error(f"Failed to write revocation entry: {e}")
            raise DependencyUnavailableError("Revocation store is unavailable") from e

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(self._key(key)))
        except RedisError as e:
            logger.error(f"Failed to read revocation entry: {e}")
            raise DependencyUnavailableError("Revocation store is unavailable") from e

    async def close(self) -> None:
        await self._client.aclose()


_store_instance: Optional[RevocationStore] = None


def get_revocation_store() -> RevocationStore:
    """Get or create the process-wide revocation store for REVOCATION_BACKEND."""
    global _store_instance
    if _store_instance is not None:
        return _store_instance

    if settings.REVOCATION_BACKEND == "redis":
        logger.info("Using Redis revocation store")
        _store_instance = RedisRevocationStore()
    else:
        if settings.is_production:
            logger.warning("In-memory revocation store in production; revocations are not shared between processes")
        logger.info("Using in-memory revocation store")
        _store_instance = MemoryRevocationStore()

    return _store_instance


def reset_revocation_store() -> None:
    """Reset the global store instance (for testing)."""
    global _store_instance
    _store_instance = None
