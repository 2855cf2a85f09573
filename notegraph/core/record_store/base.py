"""
Base interface for the record store.

Keyed, queryable persistence for notes, portfolios, atomic knowledge,
topics/intentions and interest scores. The indexing pipeline depends only on
this interface.
"""

from abc import ABC, abstractmethod

from notegraph.models.interest import InterestScore
from notegraph.models.knowledge import AtomicKnowledge, EntityKind, KnowledgeEntity, SourceInfo
from notegraph.models.note import IndexingStatus, Note
from notegraph.models.portfolio import Portfolio


class RecordStore(ABC):
    """Abstract base class for record storage implementations."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables/schema)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying connection."""
        pass

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_note(self, note: Note) -> None:
        """Insert or replace a note."""
        pass

    @abstractmethod
    async def get_note(self, note_id: str, include_deleted: bool = False) -> Note | None:
        """
        Retrieve a note by ID.

        Args:
            note_id: Note identifier
            include_deleted: Also return soft-deleted notes

        Returns:
            Note or None if not found
        """
        pass

    @abstractmethod
    async def set_indexing_status(self, note_id: str, status: IndexingStatus) -> bool:
        """
        Persist a note's indexing status.

        Returns:
            True if the note exists and was updated
        """
        pass

    @abstractmethod
    async def get_indexing_status(self, note_id: str) -> IndexingStatus | None:
        """Current indexing status, or None if the note doesn't exist."""
        pass

    @abstractmethod
    async def update_note_index(
        self,
        note_id: str,
        summary: str | None,
        compound_text: str,
        topics: list[str],
        intentions: list[str],
        status: IndexingStatus,
    ) -> None:
        """
        Write the derived fields and status of a note in one update.

        Raises:
            NotFoundError: If the note doesn't exist
            RecordStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def soft_delete_note(self, note_id: str) -> None:
        """Mark a note as deleted without removing it."""
        pass

    @abstractmethod
    async def list_note_ids_by_status(self, status: IndexingStatus) -> list[str]:
        """IDs of non-deleted notes in the given indexing status."""
        pass

    # ═══════════════════════════════════════════════════════════
    # PORTFOLIOS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_portfolio(self, portfolio: Portfolio) -> None:
        """Insert or replace a portfolio."""
        pass

    @abstractmethod
    async def get_portfolios(self, portfolio_ids: list[str]) -> list[Portfolio]:
        """Portfolios among the given IDs that exist."""
        pass

    @abstractmethod
    async def get_human_portfolio(self, user_id: str) -> Portfolio | None:
        """The user's human portfolio, if any."""
        pass

    # ═══════════════════════════════════════════════════════════
    # ATOMIC KNOWLEDGE
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def insert_atomic_knowledge(self, records: list[AtomicKnowledge]) -> None:
        """Insert atomic knowledge records."""
        pass

    @abstractmethod
    async def list_atomic_knowledge(self, source: SourceInfo) -> list[AtomicKnowledge]:
        """All records stamped with the given source."""
        pass

    @abstractmethod
    async def delete_atomic_knowledge_by_source(self, source: SourceInfo) -> int:
        """
        Delete every record stamped with the given source.

        Returns:
            Number of deleted records
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # TOPICS / INTENTIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def upsert_entity_by_name(
        self,
        kind: EntityKind,
        name: str,
        description: str,
        source_id: str,
    ) -> KnowledgeEntity:
        """
        Atomically find-or-create an entity by normalized name.

        The first writer of a name creates the entity; later writers reuse it.
        The source is recorded as a contributor either way. An existing
        description is kept; an empty one is filled in.

        Returns:
            The created or reused entity
        """
        pass

    @abstractmethod
    async def get_entity(self, entity_id: str) -> KnowledgeEntity | None:
        """Retrieve a topic or intention by ID."""
        pass

    @abstractmethod
    async def find_entity_by_name(self, kind: EntityKind, name: str) -> KnowledgeEntity | None:
        """Look up an entity by normalized name."""
        pass

    @abstractmethod
    async def list_entities(self, kind: EntityKind) -> list[KnowledgeEntity]:
        """All entities of a kind."""
        pass

    # ═══════════════════════════════════════════════════════════
    # INTEREST SCORES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_interest(self, user_id: str, topic_id: str, weight: float) -> InterestScore:
        """
        Atomically add weight to a user's interest in a topic.

        Creates the (user, topic) row if absent.
        """
        pass

    @abstractmethod
    async def decay_interests(self, user_id: str, amount: float) -> int:
        """
        Subtract amount from every positive memory score of a user (floored at 0).

        Returns:
            Number of decayed rows
        """
        pass

    @abstractmethod
    async def get_interest(self, user_id: str, topic_id: str) -> InterestScore | None:
        """Interest row for (user, topic), if any."""
        pass

    @abstractmethod
    async def list_interests(self, user_id: str, limit: int = 100) -> list[InterestScore]:
        """A user's interests ordered by memory score, highest first."""
        pass
