"""
Data models for NoteGraph.

Core models:
- Note, ImageReference, UrlReference: Authored content and its references
- IndexingStatus: Note indexing lifecycle
- Portfolio, PortfolioType: Visibility scopes for knowledge
- AtomicKnowledge, SourceInfo: Extracted statements
- KnowledgeEntity, EntityKind: Deduplicated topics and intentions
- InterestScore: Per-user topic interest
- ExtractionResult, AskTopicsResult: Validated LLM payloads
- IndexingResult, RunOutcome: Indexing run results
- CompoundText, NoteEmbeddings, KnowledgeWriteResult: Pipeline stage outputs
"""

from notegraph.models.extraction import (
    AskTopicsResult,
    ExtractedEntity,
    ExtractedStatement,
    ExtractionResult,
)
from notegraph.models.indexing import (
    CompoundText,
    IndexingResult,
    KnowledgeWriteResult,
    NoteEmbeddings,
    ResolvedReference,
    RunOutcome,
)
from notegraph.models.interest import InterestScore, TopicInterest
from notegraph.models.knowledge import (
    AtomicKnowledge,
    EntityKind,
    KnowledgeEntity,
    SourceInfo,
    SourceType,
    normalize_name,
)
from notegraph.models.note import (
    ImageReference,
    IndexingStatus,
    Note,
    NoteReference,
    UrlReference,
)
from notegraph.models.portfolio import Portfolio, PortfolioType

__all__ = [
    # Note models
    "Note",
    "NoteReference",
    "ImageReference",
    "UrlReference",
    "IndexingStatus",
    # Portfolio models
    "Portfolio",
    "PortfolioType",
    # Knowledge models
    "AtomicKnowledge",
    "SourceInfo",
    "SourceType",
    "KnowledgeEntity",
    "EntityKind",
    "normalize_name",
    # Interest models
    "InterestScore",
    "TopicInterest",
    # Extraction models
    "ExtractionResult",
    "ExtractedStatement",
    "ExtractedEntity",
    "AskTopicsResult",
    # Indexing models
    "IndexingResult",
    "RunOutcome",
    "ResolvedReference",
    "CompoundText",
    "NoteEmbeddings",
    "KnowledgeWriteResult",
]
