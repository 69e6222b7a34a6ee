"""
Database module for ReliefWatch
Relational persistence for the external-call cache
"""

from .connection import DatabaseConnection, get_db, init_db
from .models import Base, CacheEntry

__all__ = [
    "DatabaseConnection",
    "get_db",
    "init_db",
    "Base",
    "CacheEntry",
]
