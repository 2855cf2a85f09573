"""
Indexing pipeline services for NoteGraph.

Services:
- ReferenceResolver: Image descriptions and link previews as text fragments
- CompoundTextBuilder: Canonical compound text per note
- ExtractionEngine: Summary, atomic knowledge, topics, intentions
- EmbeddingStage: Note and statement embeddings
- KnowledgeGraphWriter: Topic/intention merge and atomic knowledge replace
- InterestTracker: Per-user topic interest scores
- IndexingOrchestrator: The per-note state machine and trigger interface
"""

from notegraph.services.compound_text import CompoundTextBuilder, assemble_compound_text
from notegraph.services.embedding_stage import EmbeddingStage
from notegraph.services.extraction_engine import ExtractionEngine, parse_json_object
from notegraph.services.indexing_orchestrator import IndexingOrchestrator
from notegraph.services.interest_tracker import InterestTracker
from notegraph.services.knowledge_writer import KnowledgeGraphWriter, note_source
from notegraph.services.reference_resolver import ReferenceResolver, format_url_reference

__all__ = [
    "ReferenceResolver",
    "format_url_reference",
    "CompoundTextBuilder",
    "assemble_compound_text",
    "ExtractionEngine",
    "parse_json_object",
    "EmbeddingStage",
    "KnowledgeGraphWriter",
    "note_source",
    "InterestTracker",
    "IndexingOrchestrator",
]
