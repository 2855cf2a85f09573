"""
Factory for creating vector store backends.
"""

from notegraph.config import Config
from notegraph.core.vector_store.base import VectorStore
from notegraph.core.vector_store.qdrant import QdrantVectorStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore
from notegraph.utils.exceptions import ConfigurationError


class VectorStoreFactory:
    """Factory for creating vector store backends from configuration."""

    @staticmethod
    def create(config: Config, vector_size: int | None = None) -> VectorStore:
        """
        Create vector store from configuration.

        Args:
            config: Main configuration object
            vector_size: Embedding dimension (required for qdrant)

        Returns:
            Vector store instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.vector_backend == "sqlite":
            return SQLiteVectorStore(db_path=config.store.db_path)
        elif config.vector_backend == "qdrant":
            if not vector_size:
                raise ConfigurationError("Qdrant backend needs the embedding dimension")
            return QdrantVectorStore(
                url=config.qdrant.url,
                collection_name=config.qdrant.collection_name,
                vector_size=vector_size,
                use_grpc=config.qdrant.use_grpc,
                on_disk=config.qdrant.on_disk,
                timeout=config.qdrant.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported vector backend: {config.vector_backend}")
