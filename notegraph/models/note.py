"""
Note model for short user-authored posts.

Notes are the unit of indexing in NoteGraph. The authoring flow creates
them with the raw text, an ordered reference list and portfolio
assignments; the indexing pipeline owns the derived fields.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class IndexingStatus(str, Enum):
    """Indexing lifecycle of a note."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImageReference(BaseModel):
    """Image embedded in a note."""

    type: Literal["image"] = "image"
    url: str = Field(..., description="Public URL of the image")


class UrlReference(BaseModel):
    """Link attached to a note, with whatever preview metadata was scraped."""

    type: Literal["url"] = "url"
    url: str = Field(default="", description="Linked URL")
    host_name: str | None = Field(default=None, description="Host name of the link")
    title: str | None = Field(default=None, description="Page title")
    description: str | None = Field(default=None, description="Page description")
    image_url: str | None = Field(default=None, description="Header image of the page")


NoteReference = Annotated[ImageReference | UrlReference, Field(discriminator="type")]


class Note(BaseModel):
    """
    User-authored note with pipeline-derived fields.

    Derived fields (summary, compound_text, topics, intentions,
    indexing_status) are written only by the indexing orchestrator.
    Readers must not treat summary/topics as authoritative unless
    indexing_status is COMPLETED.
    """

    # Core identity
    id: str = Field(..., description="Unique note ID (note_xxx)")
    author_id: str = Field(..., description="Author user ID")

    # Content
    text: str = Field(default="", description="Raw note text")
    references: list[NoteReference] = Field(
        default_factory=list, description="Ordered image and URL references"
    )
    mentioned_note_id: str | None = Field(
        default=None, description="ID of the note this note annotates"
    )
    assigned_portfolios: list[str] = Field(
        default_factory=list, description="Portfolio IDs the note is assigned to"
    )

    # Derived by the indexing pipeline
    summary: str | None = Field(default=None, description="One-sentence summary")
    compound_text: str | None = Field(default=None, description="Canonical indexed text")
    topics: list[str] = Field(default_factory=list, description="Resolved topic IDs")
    intentions: list[str] = Field(default_factory=list, description="Resolved intention IDs")
    indexing_status: IndexingStatus = Field(
        default=IndexingStatus.PENDING, description="Indexing lifecycle status"
    )

    # Timestamps
    deleted_at: datetime | None = Field(default=None, description="Soft-delete timestamp")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    @property
    def is_deleted(self) -> bool:
        """
        Check if note has been soft-deleted.

        Returns:
            True if deleted_at is set
        """
        return self.deleted_at is not None

    @property
    def image_references(self) -> list[ImageReference]:
        return [ref for ref in self.references if isinstance(ref, ImageReference)]

    @property
    def url_references(self) -> list[UrlReference]:
        return [ref for ref in self.references if isinstance(ref, UrlReference)]
