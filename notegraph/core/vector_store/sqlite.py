"""
SQLite vector store.

Keeps note vectors as JSON arrays next to the records. Suitable for local
setups where no dedicated vector database is running.
"""

import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from notegraph.core.vector_store.base import NoteVectors, VectorStore
from notegraph.utils.exceptions import VectorStoreError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteVectorStore(VectorStore):
    """Note vectors in a `note_vectors` table."""

    def __init__(self, db_path: str = "data/notegraph.db"):
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row

    async def initialize(self) -> None:
        """Create the vectors table."""
        try:
            await self.connect()
            await self.connection.execute(
                """
                CREATE TABLE IF NOT EXISTS note_vectors (
                    note_id TEXT PRIMARY KEY,
                    summary_vector TEXT,
                    compound_text_vector TEXT,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            logger.error(f"Failed to initialize vector table: {e}", extra={"db_path": self.db_path})
            raise VectorStoreError(f"Failed to initialize vector table: {e}") from e

    async def store_note_vectors(
        self,
        note_id: str,
        summary_vector: list[float] | None,
        compound_text_vector: list[float] | None,
    ) -> None:
        """Store or replace a note's vectors."""
        await self.connect()
        try:
            await self.connection.execute(
                """
                INSERT OR REPLACE INTO note_vectors
                    (note_id, summary_vector, compound_text_vector, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    note_id,
                    json.dumps(summary_vector) if summary_vector is not None else None,
                    json.dumps(compound_text_vector) if compound_text_vector is not None else None,
                    datetime.now().isoformat(),
                ),
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise VectorStoreError(
                f"Failed to store vectors: {e}", context={"note_id": note_id}
            ) from e

    async def get_note_vectors(self, note_id: str) -> NoteVectors | None:
        """Retrieve a note's vectors."""
        await self.connect()
        try:
            cursor = await self.connection.execute(
                "SELECT * FROM note_vectors WHERE note_id = ?", (note_id,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise VectorStoreError(f"Failed to read vectors: {e}") from e

        if row is None:
            return None

        return NoteVectors(
            note_id=row["note_id"],
            summary_vector=json.loads(row["summary_vector"]) if row["summary_vector"] else None,
            compound_text_vector=(
                json.loads(row["compound_text_vector"]) if row["compound_text_vector"] else None
            ),
        )

    async def delete_note_vectors(self, note_id: str) -> None:
        """Delete a note's vector entry."""
        await self.connect()
        try:
            await self.connection.execute("DELETE FROM note_vectors WHERE note_id = ?", (note_id,))
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise VectorStoreError(
                f"Failed to delete vectors: {e}", context={"note_id": note_id}
            ) from e

    async def close(self) -> None:
        """Close connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None
