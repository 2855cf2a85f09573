"""
SQLite record store implementation using aiosqlite.

JSON columns hold list-valued fields. A unique (kind, normalized_name) index
turns topic/intention lookup-or-create into a conditional insert, so two
indexing runs extracting the same name converge on one entity.
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import TypeAdapter

from notegraph.core.record_store.base import RecordStore
from notegraph.models.interest import InterestScore
from notegraph.models.knowledge import (
    AtomicKnowledge,
    EntityKind,
    KnowledgeEntity,
    SourceInfo,
    SourceType,
    normalize_name,
)
from notegraph.models.note import IndexingStatus, Note, NoteReference
from notegraph.models.portfolio import Portfolio, PortfolioType
from notegraph.utils.exceptions import NotFoundError, RecordStoreError, ValidationError
from notegraph.utils.id_generator import generate_intention_id, generate_topic_id
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

_references_adapter = TypeAdapter(list[NoteReference])

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS notes (
        id TEXT PRIMARY KEY,
        author_id TEXT NOT NULL,
        text TEXT NOT NULL DEFAULT '',
        note_references TEXT NOT NULL DEFAULT '[]',
        mentioned_note_id TEXT,
        assigned_portfolios TEXT NOT NULL DEFAULT '[]',
        summary TEXT,
        compound_text TEXT,
        topics TEXT NOT NULL DEFAULT '[]',
        intentions TEXT NOT NULL DEFAULT '[]',
        indexing_status TEXT NOT NULL DEFAULT 'pending',
        deleted_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS portfolios (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        user_id TEXT NOT NULL,
        name TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS atomic_knowledge (
        id TEXT PRIMARY KEY,
        knowledge_text TEXT NOT NULL,
        is_ask INTEGER NOT NULL DEFAULT 0,
        source_type TEXT NOT NULL,
        source_id TEXT NOT NULL,
        assigned_human TEXT NOT NULL DEFAULT '[]',
        assigned_projects TEXT NOT NULL DEFAULT '[]',
        topics TEXT NOT NULL DEFAULT '[]',
        knowledge_vector TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entities (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        name TEXT NOT NULL,
        normalized_name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        mention_count INTEGER NOT NULL DEFAULT 0,
        mentions TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (kind, normalized_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_interests (
        user_id TEXT NOT NULL,
        topic_id TEXT NOT NULL,
        aggregate_score REAL NOT NULL DEFAULT 0,
        memory_score REAL NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (user_id, topic_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notes_status ON notes(indexing_status)",
    "CREATE INDEX IF NOT EXISTS idx_portfolios_user ON portfolios(user_id, type)",
    "CREATE INDEX IF NOT EXISTS idx_knowledge_source ON atomic_knowledge(source_type, source_id)",
    "CREATE INDEX IF NOT EXISTS idx_interests_user ON user_interests(user_id, memory_score)",
]


class SQLiteRecordStore(RecordStore):
    """
    SQLite-based record store.

    Features:
    - Single aiosqlite connection, WAL journal
    - JSON columns for list fields
    - Conditional insert for topic/intention names
    - Additive upsert for interest scores
    """

    def __init__(self, db_path: str = "data/notegraph.db"):
        """
        Initialize SQLite record store.

        Args:
            db_path: Path to SQLite database file (":memory:" for a private in-memory db)
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None
        # Serializes read-modify-write sequences and rollback-capable writes across runs
        self._write_lock = asyncio.Lock()

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row
            await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.commit()

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        for statement in _SCHEMA:
            await self.connection.execute(statement)

        await self.connection.commit()

    async def close(self) -> None:
        """Close connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None

    # ═══════════════════════════════════════════════════════════
    # LOW-LEVEL HELPERS
    # ═══════════════════════════════════════════════════════════

    async def _execute(self, query: str, params: tuple | list = (), commit: bool = True) -> int:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            if commit:
                await self.connection.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            logger.error(f"SQLite write failed: {e}", extra={"query": query.split()[0]})
            raise RecordStoreError(f"SQLite write failed: {e}") from e

    async def _fetchone(self, query: str, params: tuple | list = ()) -> aiosqlite.Row | None:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise RecordStoreError(f"SQLite read failed: {e}") from e

    async def _fetchall(self, query: str, params: tuple | list = ()) -> list[aiosqlite.Row]:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise RecordStoreError(f"SQLite read failed: {e}") from e

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    async def add_note(self, note: Note) -> None:
        """Insert or replace a note."""
        await self._execute(
            """
            INSERT OR REPLACE INTO notes (
                id, author_id, text, note_references, mentioned_note_id, assigned_portfolios,
                summary, compound_text, topics, intentions, indexing_status,
                deleted_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                note.id,
                note.author_id,
                note.text,
                _references_adapter.dump_json(note.references).decode(),
                note.mentioned_note_id,
                json.dumps(note.assigned_portfolios),
                note.summary,
                note.compound_text,
                json.dumps(note.topics),
                json.dumps(note.intentions),
                note.indexing_status.value,
                note.deleted_at.isoformat() if note.deleted_at else None,
                note.created_at.isoformat(),
                note.updated_at.isoformat(),
            ),
        )

    async def get_note(self, note_id: str, include_deleted: bool = False) -> Note | None:
        """Retrieve a note by ID."""
        query = "SELECT * FROM notes WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"

        row = await self._fetchone(query, (note_id,))
        return self._row_to_note(row) if row else None

    async def set_indexing_status(self, note_id: str, status: IndexingStatus) -> bool:
        """Persist a note's indexing status."""
        updated = await self._execute(
            "UPDATE notes SET indexing_status = ?, updated_at = ? WHERE id = ?",
            (status.value, datetime.now().isoformat(), note_id),
        )
        return updated > 0

    async def get_indexing_status(self, note_id: str) -> IndexingStatus | None:
        """Current indexing status of a note."""
        row = await self._fetchone("SELECT indexing_status FROM notes WHERE id = ?", (note_id,))
        return IndexingStatus(row["indexing_status"]) if row else None

    async def update_note_index(
        self,
        note_id: str,
        summary: str | None,
        compound_text: str,
        topics: list[str],
        intentions: list[str],
        status: IndexingStatus,
    ) -> None:
        """Write derived fields and status in one statement."""
        updated = await self._execute(
            """
            UPDATE notes
            SET summary = ?, compound_text = ?, topics = ?, intentions = ?,
                indexing_status = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                summary,
                compound_text,
                json.dumps(topics),
                json.dumps(intentions),
                status.value,
                datetime.now().isoformat(),
                note_id,
            ),
        )
        if updated == 0:
            raise NotFoundError(f"Note not found: {note_id}", context={"note_id": note_id})

    async def soft_delete_note(self, note_id: str) -> None:
        """Mark a note as deleted."""
        now = datetime.now().isoformat()
        await self._execute(
            "UPDATE notes SET deleted_at = ?, updated_at = ? WHERE id = ?",
            (now, now, note_id),
        )

    async def list_note_ids_by_status(self, status: IndexingStatus) -> list[str]:
        """IDs of non-deleted notes in a status, oldest first."""
        rows = await self._fetchall(
            """
            SELECT id FROM notes
            WHERE indexing_status = ? AND deleted_at IS NULL
            ORDER BY created_at
            """,
            (status.value,),
        )
        return [row["id"] for row in rows]

    # ═══════════════════════════════════════════════════════════
    # PORTFOLIOS
    # ═══════════════════════════════════════════════════════════

    async def add_portfolio(self, portfolio: Portfolio) -> None:
        """Insert or replace a portfolio."""
        await self._execute(
            "INSERT OR REPLACE INTO portfolios (id, type, user_id, name) VALUES (?, ?, ?, ?)",
            (portfolio.id, portfolio.type.value, portfolio.user_id, portfolio.name),
        )

    async def get_portfolios(self, portfolio_ids: list[str]) -> list[Portfolio]:
        """Existing portfolios among the given IDs."""
        if not portfolio_ids:
            return []

        placeholders = ", ".join("?" for _ in portfolio_ids)
        rows = await self._fetchall(
            f"SELECT * FROM portfolios WHERE id IN ({placeholders})", list(portfolio_ids)
        )
        return [self._row_to_portfolio(row) for row in rows]

    async def get_human_portfolio(self, user_id: str) -> Portfolio | None:
        """The user's human portfolio."""
        row = await self._fetchone(
            "SELECT * FROM portfolios WHERE user_id = ? AND type = ? LIMIT 1",
            (user_id, PortfolioType.HUMAN.value),
        )
        return self._row_to_portfolio(row) if row else None

    # ═══════════════════════════════════════════════════════════
    # ATOMIC KNOWLEDGE
    # ═══════════════════════════════════════════════════════════

    async def insert_atomic_knowledge(self, records: list[AtomicKnowledge]) -> None:
        """Insert records in one transaction."""
        if not records:
            return

        await self.connect()
        async with self._write_lock:
            try:
                await self.connection.executemany(
                    """
                    INSERT INTO atomic_knowledge (
                        id, knowledge_text, is_ask, source_type, source_id,
                        assigned_human, assigned_projects, topics, knowledge_vector, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            record.id,
                            record.knowledge_text,
                            int(record.is_ask),
                            record.source_info.source_type.value,
                            record.source_info.source_id,
                            json.dumps(record.assigned_human),
                            json.dumps(record.assigned_projects),
                            json.dumps(record.topics),
                            json.dumps(record.knowledge_vector) if record.knowledge_vector else None,
                            record.created_at.isoformat(),
                        )
                        for record in records
                    ],
                )
                await self.connection.commit()
            except aiosqlite.Error as e:
                await self.connection.rollback()
                raise RecordStoreError(f"Failed to store atomic knowledge: {e}") from e

    async def list_atomic_knowledge(self, source: SourceInfo) -> list[AtomicKnowledge]:
        """Records for a source, in insertion order."""
        rows = await self._fetchall(
            """
            SELECT * FROM atomic_knowledge
            WHERE source_type = ? AND source_id = ?
            ORDER BY rowid
            """,
            (source.source_type.value, source.source_id),
        )
        return [self._row_to_knowledge(row) for row in rows]

    async def delete_atomic_knowledge_by_source(self, source: SourceInfo) -> int:
        """Delete a source's records."""
        return await self._execute(
            "DELETE FROM atomic_knowledge WHERE source_type = ? AND source_id = ?",
            (source.source_type.value, source.source_id),
        )

    # ═══════════════════════════════════════════════════════════
    # TOPICS / INTENTIONS
    # ═══════════════════════════════════════════════════════════

    async def upsert_entity_by_name(
        self,
        kind: EntityKind,
        name: str,
        description: str,
        source_id: str,
    ) -> KnowledgeEntity:
        """Find-or-create by (kind, normalized name) and record the source."""
        key = normalize_name(name)
        if not key:
            raise ValidationError("Entity name cannot be empty")

        display_name = " ".join(name.split())
        new_id = generate_topic_id() if kind == EntityKind.TOPIC else generate_intention_id()
        now = datetime.now().isoformat()

        async with self._write_lock:
            await self._execute(
                """
                INSERT INTO entities (
                    id, kind, name, normalized_name, description,
                    mention_count, mentions, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, '[]', ?, ?)
                ON CONFLICT (kind, normalized_name) DO NOTHING
                """,
                (new_id, kind.value, display_name, key, description or "", now, now),
            )

            row = await self._fetchone(
                "SELECT * FROM entities WHERE kind = ? AND normalized_name = ?",
                (kind.value, key),
            )
            if row is None:
                raise RecordStoreError(f"Entity vanished after upsert: {display_name}")
            entity = self._row_to_entity(row)

            if source_id and source_id not in entity.mentions:
                entity.mentions.append(source_id)
                entity.mention_count += 1
            if description and not entity.description:
                entity.description = description

            await self._execute(
                """
                UPDATE entities
                SET description = ?, mention_count = ?, mentions = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    entity.description,
                    entity.mention_count,
                    json.dumps(entity.mentions),
                    now,
                    entity.id,
                ),
            )

        return entity

    async def get_entity(self, entity_id: str) -> KnowledgeEntity | None:
        """Retrieve an entity by ID."""
        row = await self._fetchone("SELECT * FROM entities WHERE id = ?", (entity_id,))
        return self._row_to_entity(row) if row else None

    async def find_entity_by_name(self, kind: EntityKind, name: str) -> KnowledgeEntity | None:
        """Look up an entity by normalized name."""
        row = await self._fetchone(
            "SELECT * FROM entities WHERE kind = ? AND normalized_name = ?",
            (kind.value, normalize_name(name)),
        )
        return self._row_to_entity(row) if row else None

    async def list_entities(self, kind: EntityKind) -> list[KnowledgeEntity]:
        """All entities of a kind, oldest first."""
        rows = await self._fetchall(
            "SELECT * FROM entities WHERE kind = ? ORDER BY created_at, rowid", (kind.value,)
        )
        return [self._row_to_entity(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # INTEREST SCORES
    # ═══════════════════════════════════════════════════════════

    async def add_interest(self, user_id: str, topic_id: str, weight: float) -> InterestScore:
        """Additive upsert of a (user, topic) interest row."""
        async with self._write_lock:
            await self._execute(
                """
                INSERT INTO user_interests (user_id, topic_id, aggregate_score, memory_score, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id, topic_id) DO UPDATE SET
                    aggregate_score = aggregate_score + excluded.aggregate_score,
                    memory_score = memory_score + excluded.memory_score,
                    updated_at = excluded.updated_at
                """,
                (user_id, topic_id, weight, weight, datetime.now().isoformat()),
            )
            interest = await self.get_interest(user_id, topic_id)

        if interest is None:
            raise RecordStoreError(f"Interest row missing after upsert: {user_id}/{topic_id}")
        return interest

    async def decay_interests(self, user_id: str, amount: float) -> int:
        """Decay positive memory scores, never below zero."""
        async with self._write_lock:
            return await self._execute(
                """
                UPDATE user_interests
                SET memory_score = MAX(0.0, memory_score - ?), updated_at = ?
                WHERE user_id = ? AND memory_score > 0
                """,
                (amount, datetime.now().isoformat(), user_id),
            )

    async def get_interest(self, user_id: str, topic_id: str) -> InterestScore | None:
        """Interest row for (user, topic)."""
        row = await self._fetchone(
            "SELECT * FROM user_interests WHERE user_id = ? AND topic_id = ?",
            (user_id, topic_id),
        )
        return self._row_to_interest(row) if row else None

    async def list_interests(self, user_id: str, limit: int = 100) -> list[InterestScore]:
        """A user's interests, highest memory score first."""
        rows = await self._fetchall(
            """
            SELECT * FROM user_interests
            WHERE user_id = ?
            ORDER BY memory_score DESC, aggregate_score DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [self._row_to_interest(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # ROW CONVERSION
    # ═══════════════════════════════════════════════════════════

    @staticmethod
    def _loads(value: str | None, default: Any) -> Any:
        return json.loads(value) if value else default

    def _row_to_note(self, row: aiosqlite.Row) -> Note:
        return Note(
            id=row["id"],
            author_id=row["author_id"],
            text=row["text"],
            references=_references_adapter.validate_json(row["note_references"] or "[]"),
            mentioned_note_id=row["mentioned_note_id"],
            assigned_portfolios=self._loads(row["assigned_portfolios"], []),
            summary=row["summary"],
            compound_text=row["compound_text"],
            topics=self._loads(row["topics"], []),
            intentions=self._loads(row["intentions"], []),
            indexing_status=IndexingStatus(row["indexing_status"]),
            deleted_at=datetime.fromisoformat(row["deleted_at"]) if row["deleted_at"] else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_portfolio(self, row: aiosqlite.Row) -> Portfolio:
        return Portfolio(
            id=row["id"],
            type=PortfolioType(row["type"]),
            user_id=row["user_id"],
            name=row["name"],
        )

    def _row_to_knowledge(self, row: aiosqlite.Row) -> AtomicKnowledge:
        return AtomicKnowledge(
            id=row["id"],
            knowledge_text=row["knowledge_text"],
            is_ask=bool(row["is_ask"]),
            source_info=SourceInfo(
                source_type=SourceType(row["source_type"]), source_id=row["source_id"]
            ),
            assigned_human=self._loads(row["assigned_human"], []),
            assigned_projects=self._loads(row["assigned_projects"], []),
            topics=self._loads(row["topics"], []),
            knowledge_vector=self._loads(row["knowledge_vector"], None),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_entity(self, row: aiosqlite.Row) -> KnowledgeEntity:
        return KnowledgeEntity(
            id=row["id"],
            kind=EntityKind(row["kind"]),
            name=row["name"],
            description=row["description"] or "",
            mention_count=row["mention_count"],
            mentions=self._loads(row["mentions"], []),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_interest(self, row: aiosqlite.Row) -> InterestScore:
        return InterestScore(
            user_id=row["user_id"],
            topic_id=row["topic_id"],
            aggregate_score=row["aggregate_score"],
            memory_score=row["memory_score"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
