"""
Knowledge graph models: atomic knowledge records, topics and intentions.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SourceType(str, Enum):
    """Kind of content an atomic knowledge record was extracted from."""

    NOTE = "note"


class SourceInfo(BaseModel):
    """Source descriptor stamped on every atomic knowledge record."""

    source_type: SourceType = Field(default=SourceType.NOTE, description="Source kind")
    source_id: str = Field(..., description="Source ID (note ID)")


class AtomicKnowledge(BaseModel):
    """
    One discrete statement extracted from a note's compound text.

    Records are never mutated. Re-indexing a source deletes all of its
    records and inserts a fresh set.
    """

    id: str = Field(..., description="Unique record ID (ak_xxx)")
    knowledge_text: str = Field(..., description="The statement")
    is_ask: bool = Field(default=False, description="True if the statement is a request")
    source_info: SourceInfo = Field(..., description="Where the statement came from")

    # Visibility
    assigned_human: list[str] = Field(default_factory=list, description="Human portfolio IDs")
    assigned_projects: list[str] = Field(
        default_factory=list, description="Project portfolio IDs"
    )

    topics: list[str] = Field(default_factory=list, description="Topic IDs")
    knowledge_vector: list[float] | None = Field(
        default=None, description="Embedding of the statement"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


class EntityKind(str, Enum):
    """Namespace of a named knowledge entity."""

    TOPIC = "topic"
    INTENTION = "intention"


def normalize_name(name: str) -> str:
    """
    Identity key for topic and intention names.

    Collapses internal whitespace, strips the ends and casefolds, so
    "Climate  Policy " and "climate policy" share one entity.
    """
    return " ".join(name.split()).casefold()


class KnowledgeEntity(BaseModel):
    """
    Named, deduplicated topic or intention.

    Identity is (kind, normalized_name); topics and intentions never
    collide even when they share a name.
    """

    id: str = Field(..., description="Entity ID (topic_xxx or intent_xxx)")
    kind: EntityKind = Field(default=EntityKind.TOPIC, description="Entity namespace")
    name: str = Field(..., description="Canonical display name")
    description: str = Field(default="", description="One-sentence description")
    mention_count: int = Field(default=0, ge=0, description="Number of contributing sources")
    mentions: list[str] = Field(default_factory=list, description="Contributing source IDs")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)
