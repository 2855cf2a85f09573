"""
Factory modules for creating NoteGraph components.

Provides modular factories for LLM, Vision, Embedder, Record Store, and Vector Store.
"""

from notegraph.core.factory.embedder_factory import EmbedderFactory
from notegraph.core.factory.llm_factory import LLMFactory
from notegraph.core.factory.store_factory import RecordStoreFactory
from notegraph.core.factory.vector_factory import VectorStoreFactory
from notegraph.core.factory.vision_factory import VisionFactory

__all__ = [
    "LLMFactory",
    "VisionFactory",
    "EmbedderFactory",
    "RecordStoreFactory",
    "VectorStoreFactory",
]
