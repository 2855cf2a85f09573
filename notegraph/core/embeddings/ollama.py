"""
Ollama embedder using native ollama-python SDK.
"""

import ollama

from notegraph.core.embeddings.base import Embedder
from notegraph.utils.exceptions import EmbeddingError, ValidationError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """
    Ollama embedder using the /api/embed endpoint.

    The endpoint accepts a list of inputs, so batches go out as one request.
    Supports models like nomic-embed-text, mxbai-embed-large, etc.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 120.0,
    ):
        """
        Initialize Ollama embedder.

        Args:
            host: Ollama server URL
            model: Embedding model name
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self._dimension: int | None = None

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using Ollama.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If Ollama embedding fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        embeddings = await self._embed_inputs([text], **kwargs)
        return embeddings[0]

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Embed several texts in one request.

        Raises:
            ValidationError: If the list is empty or holds an empty text
            EmbeddingError: If Ollama embedding fails
        """
        if not texts:
            raise ValidationError("Texts list cannot be empty")
        if any(not t or not t.strip() for t in texts):
            raise ValidationError("Texts cannot contain empty entries")

        return await self._embed_inputs(texts, **kwargs)

    async def _embed_inputs(self, inputs: list[str], **kwargs) -> list[list[float]]:
        try:
            response = await self.client.embed(model=self.model, input=inputs, **kwargs)
        except Exception as e:
            logger.error(
                f"Ollama embedding error: {e}",
                extra={"model": self.model, "host": self.host, "error": str(e)},
            )
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

        embeddings = response["embeddings"] if response else None
        if not embeddings or len(embeddings) != len(inputs):
            raise EmbeddingError("Ollama returned invalid embedding response")

        return [list(vector) for vector in embeddings]

    async def get_dimension(self) -> int:
        """Embedding dimension, cached after the first probe."""
        if self._dimension is None:
            self._dimension = await super().get_dimension()
        return self._dimension

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
