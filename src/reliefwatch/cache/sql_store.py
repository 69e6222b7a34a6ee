"""
Relational cache store backed by the `cache` table.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite

from reliefwatch.cache.store import Clock, utcnow
from reliefwatch.database.connection import DatabaseConnection
from reliefwatch.database.models import CacheEntry

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlCacheStore:
    """
    Cache store persisted through SQLAlchemy.

    Session work is blocking, so each call runs in a worker thread. Faults
    from the database are logged and reported as a miss (reads), a no-op
    (writes) or zero removed rows (purges).
    """

    def __init__(self, db: DatabaseConnection, clock: Clock = utcnow):
        self.db = db
        self._clock = clock

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            value = await asyncio.to_thread(self._read, key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key!r}: {e}")
            return None

        if value is None:
            logger.debug(f"Cache miss: {key}")
        else:
            logger.debug(f"Cache hit: {key}")
        return value

    async def put(self, key: str, value: Dict[str, Any], ttl_seconds: float) -> None:
        try:
            await asyncio.to_thread(self._write, key, value, ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache write failed for {key!r}: {e}")

    async def purge_expired(self) -> int:
        try:
            removed = await asyncio.to_thread(self._purge)
        except Exception as e:
            logger.warning(f"Cache purge failed: {e}")
            return 0

        if removed:
            logger.info(f"Purged {removed} expired cache entries")
        return removed

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        with self.db.get_session() as session:
            entry = session.get(CacheEntry, key)
            if entry is None or not entry.is_live(self._clock()):
                return None
            return entry.value

    def _write(self, key: str, value: Dict[str, Any], ttl_seconds: float) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        insert = _UPSERT_DIALECTS.get(self.db.dialect_name)

        with self.db.get_session() as session:
            if insert is None:
                session.merge(CacheEntry(key=key, value=value, expires_at=expires_at))
                return

            stmt = insert(CacheEntry).values(key=key, value=value, expires_at=expires_at)
            stmt = stmt.on_conflict_do_update(
                index_elements=[CacheEntry.key],
                set_={
                    "value": stmt.excluded.value,
                    "expires_at": stmt.excluded.expires_at,
                },
            )
            session.execute(stmt)

    def _purge(self) -> int:
        stmt = delete(CacheEntry).where(CacheEntry.expires_at <= self._clock())
        with self.db.get_session() as session:
            result = session.execute(stmt)
            return result.rowcount or 0
