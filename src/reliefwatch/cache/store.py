"""
Cache store interface and in-memory implementation.

Every external-service result is memoized through a CacheStore. The cache is
best-effort: reads degrade to a miss and writes to a no-op on any fault, so
callers never depend on it for correctness.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in the cache table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@runtime_checkable
class CacheStore(Protocol):
    """Key/value store with per-entry expiry."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the live value for key, or None."""
        ...

    async def put(self, key: str, value: Dict[str, Any], ttl_seconds: float) -> None:
        """Upsert value under key, expiring ttl_seconds from now."""
        ...

    async def purge_expired(self) -> int:
        """Delete expired entries and return how many were removed."""
        ...


@dataclass
class _MemoryEntry:
    value: Dict[str, Any]
    expires_at: datetime


class InMemoryCacheStore:
    """
    Dict-backed cache store.

    Used when no database is configured and in tests, where the clock can be
    replaced to move time forward.

    Usage:
        store = InMemoryCacheStore()
        await store.put("geocode:miami", {...}, ttl_seconds=3600)
        value = await store.get("geocode:miami")
    """

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._entries: Dict[str, _MemoryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None or entry.expires_at <= self._clock():
            logger.debug(f"Cache miss: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return copy.deepcopy(entry.value)

    async def put(self, key: str, value: Dict[str, Any], ttl_seconds: float) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = _MemoryEntry(value=copy.deepcopy(value), expires_at=expires_at)

    async def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info(f"Purged {len(expired)} expired cache entries")
        return len(expired)
