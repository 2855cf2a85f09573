"""
Base interface for note vector storage.

A note has at most one vector entry: the embedding of its summary and the
embedding of its compound text. Either vector may be missing when its
embedding call failed.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class NoteVectors(BaseModel):
    """Vector entry of one note."""

    note_id: str = Field(..., description="Note ID")
    summary_vector: list[float] | None = Field(default=None, description="Summary embedding")
    compound_text_vector: list[float] | None = Field(
        default=None, description="Compound text embedding"
    )

    @property
    def is_empty(self) -> bool:
        return self.summary_vector is None and self.compound_text_vector is None


class VectorStore(ABC):
    """Abstract base class for vector storage implementations."""

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the vector store (create collections/tables).

        Raises:
            VectorStoreError: If initialization fails
        """
        pass

    @abstractmethod
    async def store_note_vectors(
        self,
        note_id: str,
        summary_vector: list[float] | None,
        compound_text_vector: list[float] | None,
    ) -> None:
        """
        Store or replace a note's vectors.

        Args:
            note_id: Note identifier
            summary_vector: Summary embedding, if available
            compound_text_vector: Compound text embedding, if available

        Raises:
            VectorStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def get_note_vectors(self, note_id: str) -> NoteVectors | None:
        """
        Retrieve a note's vectors.

        Returns:
            NoteVectors or None if the note has no entry
        """
        pass

    @abstractmethod
    async def delete_note_vectors(self, note_id: str) -> None:
        """
        Delete a note's vector entry. Missing entries are not an error.

        Raises:
            VectorStoreError: If deletion fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the vector store."""
        pass
