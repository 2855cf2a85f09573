"""
OpenAI embedder using official SDK.
"""

from openai import AsyncOpenAI

from notegraph.core.embeddings.base import Embedder
from notegraph.utils.exceptions import EmbeddingError, ValidationError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for generating text embeddings.

    Supports text-embedding-3-small (default), text-embedding-3-large and
    text-embedding-ada-002. The v3 models accept a reduced `dimensions`.
    """

    # Known dimensions for OpenAI embedding models
    _MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    # OpenAI accepts up to 2048 inputs per request
    MAX_BATCH = 2048

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimensions: int | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model name
            dimensions: Optional reduced output dimension (v3 models only)
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
        """
        self.model = model
        self.dimensions = dimensions

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding for text using OpenAI.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If OpenAI API call fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        embeddings = await self._create([text], **kwargs)
        return embeddings[0]

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Batch embed using OpenAI's multi-input requests.

        Raises:
            ValidationError: If the list is empty or holds an empty text
            EmbeddingError: If a request fails
        """
        if not texts:
            raise ValidationError("Texts list cannot be empty")
        if any(not t or not t.strip() for t in texts):
            raise ValidationError("Texts cannot contain empty entries")

        embeddings = []
        for i in range(0, len(texts), self.MAX_BATCH):
            embeddings.extend(await self._create(texts[i : i + self.MAX_BATCH], **kwargs))
        return embeddings

    async def _create(self, inputs: list[str], **kwargs) -> list[list[float]]:
        if self.dimensions:
            kwargs.setdefault("dimensions", self.dimensions)

        try:
            response = await self.client.embeddings.create(
                model=self.model, input=inputs, **kwargs
            )
        except Exception as e:
            logger.error(
                f"OpenAI embedding error: {e}",
                extra={
                    "model": self.model,
                    "num_texts": len(inputs),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

        if not response.data or len(response.data) != len(inputs):
            raise EmbeddingError("OpenAI returned empty embedding response")

        return [item.embedding for item in response.data]

    async def get_dimension(self) -> int:
        """Configured or known model dimension; probes for unknown models."""
        if self.dimensions:
            return self.dimensions
        if self.model in self._MODEL_DIMENSIONS:
            return self._MODEL_DIMENSIONS[self.model]
        return await super().get_dimension()

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
