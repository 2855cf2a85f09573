"""
Record store implementations for NoteGraph.

Provides abstract base and the aiosqlite implementation.
"""

from notegraph.core.record_store.base import RecordStore
from notegraph.core.record_store.sqlite_store import SQLiteRecordStore

__all__ = [
    "RecordStore",
    "SQLiteRecordStore",
]
