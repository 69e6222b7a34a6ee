"""
ReliefWatch - Cache Module
Best-effort memoization for external service calls.
"""

from typing import Optional

from reliefwatch.core.config import Settings, settings as default_settings
from reliefwatch.cache.store import CacheStore, InMemoryCacheStore, utcnow
from reliefwatch.cache.sql_store import SqlCacheStore
from reliefwatch.database import init_db


def create_cache_store(config: Optional[Settings] = None) -> CacheStore:
    """
    Build the cache store for the current configuration.

    A configured database gives a durable SqlCacheStore; otherwise results
    are kept in process memory.
    """
    config = config or default_settings
    if config.database_url:
        return SqlCacheStore(init_db(config.database_url))
    return InMemoryCacheStore()


__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "SqlCacheStore",
    "create_cache_store",
    "utcnow",
]
