"""
Database boundary: ORM models, CRUD helpers, connection and record store.
"""

from tutordesk.boundary.db.base import Base, utc_now
from tutordesk.boundary.db.connection import (
    create_tables,
    get_async_engine,
    get_async_session_factory,
)
from tutordesk.boundary.db.record_store import RecordStore, create_record_store

__all__ = [
    "Base",
    "create_record_store",
    "create_tables",
    "get_async_engine",
    "get_async_session_factory",
    "RecordStore",
    "utc_now",
]
