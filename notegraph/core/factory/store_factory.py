"""
Factory for creating record stores.
"""

from notegraph.config import StoreConfig
from notegraph.core.record_store.base import RecordStore
from notegraph.core.record_store.sqlite_store import SQLiteRecordStore


class RecordStoreFactory:
    """Factory for creating record stores from configuration."""

    @staticmethod
    def create(config: StoreConfig) -> RecordStore:
        """Create the SQLite record store."""
        return SQLiteRecordStore(db_path=config.db_path)
