"""
Vector store implementations for NoteGraph.

Provides abstract base and concrete implementations for note vector storage.
"""

from notegraph.core.vector_store.base import NoteVectors, VectorStore
from notegraph.core.vector_store.qdrant import QdrantVectorStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore

__all__ = [
    "VectorStore",
    "NoteVectors",
    "QdrantVectorStore",
    "SQLiteVectorStore",
]
