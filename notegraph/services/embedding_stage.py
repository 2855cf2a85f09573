"""
Embedding generation and persistence for indexed notes.
"""

import asyncio

from notegraph.config import Config
from notegraph.core.embeddings.base import Embedder
from notegraph.core.tokenizer import Tokenizer
from notegraph.core.vector_store.base import VectorStore
from notegraph.models.indexing import NoteEmbeddings
from notegraph.utils.exceptions import EmbeddingError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class EmbeddingStage:
    """
    Embeds a note's summary and compound text and writes both vectors.

    The summary vector is None when the note has no summary; the compound
    text vector is always computed. Input longer than the embedding model's
    limit is truncated first.
    """

    def __init__(
        self,
        embedder: Embedder,
        vector_store: VectorStore,
        config: Config,
        tokenizer: Tokenizer | None = None,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.config = config
        self.tokenizer = tokenizer or Tokenizer(config.tokenizer)

    async def _embed(self, text: str) -> list[float]:
        try:
            return await asyncio.wait_for(
                self.embedder.embed(self.tokenizer.truncate(text)),
                timeout=self.config.indexing.call_timeout,
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingError("Embedding call timed out") from e

    async def embed_note(self, summary: str | None, compound_text: str) -> NoteEmbeddings:
        """
        Generate the note's vectors.

        Raises:
            EmbeddingError: If an embedding call fails
        """
        summary_task = self._embed(summary) if summary else None
        compound_task = self._embed(compound_text)

        if summary_task is None:
            return NoteEmbeddings(summary_vector=None, compound_text_vector=await compound_task)

        summary_vector, compound_text_vector = await asyncio.gather(summary_task, compound_task)
        return NoteEmbeddings(
            summary_vector=summary_vector, compound_text_vector=compound_text_vector
        )

    async def run(self, note_id: str, summary: str | None, compound_text: str) -> NoteEmbeddings:
        """
        Embed and persist a note's vectors.

        Raises:
            EmbeddingError: If an embedding call fails
            VectorStoreError: If the vectors cannot be written
        """
        embeddings = await self.embed_note(summary, compound_text)
        await self.vector_store.store_note_vectors(
            note_id, embeddings.summary_vector, embeddings.compound_text_vector
        )
        logger.debug(
            f"Stored vectors for {note_id}",
            extra={"has_summary_vector": embeddings.summary_vector is not None},
        )
        return embeddings

    async def embed_statements(self, texts: list[str]) -> list[list[float]] | None:
        """
        Batch-embed atomic knowledge statements.

        Returns:
            One vector per text, or None if embedding failed
        """
        if not texts:
            return []

        try:
            vectors = await asyncio.wait_for(
                self.embedder.batch_embed([self.tokenizer.truncate(t) for t in texts]),
                timeout=self.config.indexing.call_timeout,
            )
        except Exception as e:
            logger.warning(
                f"Statement embeddings unavailable: {e}",
                extra={"count": len(texts), "error_type": type(e).__name__},
            )
            return None

        if len(vectors) != len(texts):
            logger.warning(
                "Embedder returned a mismatched batch",
                extra={"expected": len(texts), "received": len(vectors)},
            )
            return None
        return vectors
