"""Utility modules for NoteGraph."""

from notegraph.utils.exceptions import (
    ConfigurationError,
    EmbeddingError,
    ExtractionError,
    IndexingError,
    LLMError,
    NoteGraphError,
    NotFoundError,
    RecordStoreError,
    StoreError,
    ValidationError,
    VectorStoreError,
    VisionError,
)
from notegraph.utils.id_generator import (
    generate_intention_id,
    generate_knowledge_id,
    generate_note_id,
    generate_run_id,
    generate_topic_id,
)
from notegraph.utils.logger import get_logger, setup_logging
from notegraph.utils.results import Outcome, failures, successes

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_note_id",
    "generate_knowledge_id",
    "generate_topic_id",
    "generate_intention_id",
    "generate_run_id",
    # Outcomes
    "Outcome",
    "successes",
    "failures",
    # Exceptions
    "NoteGraphError",
    "StoreError",
    "RecordStoreError",
    "VectorStoreError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "EmbeddingError",
    "LLMError",
    "ExtractionError",
    "VisionError",
    "IndexingError",
]
