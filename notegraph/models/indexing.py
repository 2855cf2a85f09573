"""
Indexing run result models.

Models for reporting the outcome of one indexing attempt for a note.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RunOutcome(str, Enum):
    """Outcome of one indexing attempt."""

    COMPLETED = "completed"  # Note reached COMPLETED
    FAILED = "failed"  # Fatal error, note left in FAILED
    SKIPPED = "skipped"  # Note soft-deleted, nothing touched


class IndexingResult(BaseModel):
    """
    Result of one indexing attempt.

    Returned by IndexingOrchestrator.index_note(). Degraded steps (image
    descriptions, ask topics, single topics, interest tracking) are listed
    in `degraded` without affecting `outcome`.
    """

    run_id: str = Field(..., description="Indexing run ID (run_xxx)")
    note_id: str = Field(..., description="Indexed note ID")
    outcome: RunOutcome = Field(..., description="Run outcome")

    # Derived output
    summary: str | None = Field(default=None, description="Extracted summary")
    compound_text: str | None = Field(default=None, description="Built compound text")
    topic_ids: list[str] = Field(default_factory=list, description="Resolved topic IDs")
    ask_topic_ids: list[str] = Field(
        default_factory=list, description="Topic IDs mined from asks"
    )
    intention_ids: list[str] = Field(default_factory=list, description="Resolved intention IDs")
    knowledge_count: int = Field(default=0, ge=0, description="Knowledge records written")
    ask_count: int = Field(default=0, ge=0, description="Ask records written")

    # Diagnostics
    degraded: list[str] = Field(default_factory=list, description="Non-fatal failures")
    error: str | None = Field(default=None, description="Fatal error message")
    processing_time_ms: float = Field(default=0.0, ge=0, description="Run duration in ms")
    finished_at: datetime = Field(default_factory=datetime.now)


class ResolvedReference(BaseModel):
    """Text fragment derived from one note reference."""

    kind: str = Field(..., description="Reference type (image or url)")
    content: str = Field(..., description="Fragment body, without the bracket wrapper")
    fallback: bool = Field(
        default=False, description="True if the raw URL stands in for a description"
    )

    def render(self) -> str:
        """Bracketed fragment as it appears in compound text."""
        label = "Image" if self.kind == "image" else "URL Reference"
        return f"[{label}: {self.content}]"


class CompoundText(BaseModel):
    """Compound text of a note plus what went into it."""

    text: str = Field(..., description="Canonical compound text")
    annotated_text: str | None = Field(
        default=None, description="Summary or text of the annotated note"
    )
    references: list[ResolvedReference] = Field(default_factory=list)
    degraded: list[str] = Field(default_factory=list, description="Non-fatal failures")


class NoteEmbeddings(BaseModel):
    """Embeddings generated for one note."""

    summary_vector: list[float] | None = Field(default=None, description="Summary embedding")
    compound_text_vector: list[float] = Field(..., description="Compound text embedding")


class KnowledgeWriteResult(BaseModel):
    """What the knowledge graph writer persisted for one note."""

    topic_ids: list[str] = Field(default_factory=list, description="Primary topic IDs")
    ask_topic_ids: list[str] = Field(default_factory=list, description="Topic IDs mined from asks")
    intention_ids: list[str] = Field(default_factory=list, description="Intention IDs")
    knowledge_count: int = Field(default=0, ge=0)
    ask_count: int = Field(default=0, ge=0)
    degraded: list[str] = Field(default_factory=list, description="Non-fatal failures")
