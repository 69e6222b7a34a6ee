"""
SQLAlchemy models for ReliefWatch
Durable key/value cache backing all external-call memoization.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CacheEntry(Base):
    """
    Memoized result of an external service call.

    The key encodes the operation namespace and its primary input, so a
    single row replace is the whole write.
    """
    __tablename__ = "cache"

    key = Column(String, primary_key=True)
    value = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    expires_at = Column(DateTime, nullable=False)  # naive UTC

    __table_args__ = (
        Index("idx_cache_expires_at", expires_at),
    )

    def __repr__(self):
        return f"<CacheEntry({self.key!r}, expires_at={self.expires_at})>"

    def is_live(self, now: datetime) -> bool:
        """Entries expiring exactly now are already stale."""
        return self.expires_at > now
