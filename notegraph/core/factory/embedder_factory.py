"""
Factory for creating embedder providers.
"""

from notegraph.config import EmbedderConfig
from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.ollama import OllamaEmbedder
from notegraph.core.embeddings.openai import OpenAIEmbedder
from notegraph.utils.exceptions import ConfigurationError


class EmbedderFactory:
    """Factory for creating embedder providers from configuration."""

    @staticmethod
    def create(config: EmbedderConfig) -> Embedder:
        """
        Create embedder from configuration.

        Args:
            config: Embedder configuration

        Returns:
            Embedder instance

        Raises:
            ConfigurationError: If provider is not supported or misconfigured
        """
        if config.provider == "ollama":
            return OllamaEmbedder(
                host=config.base_url,
                model=config.model,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required for the embedder")
            return OpenAIEmbedder(
                api_key=config.api_key,
                model=config.model,
                dimensions=config.dimension,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported embedder provider: {config.provider}")

    @staticmethod
    async def get_dimension(embedder: Embedder, config: EmbedderConfig | None = None) -> int:
        """
        Get embedding dimension with fallback logic.

        Priority:
        1. From config if provided
        2. From the embedder (known model table or probe embedding)
        """
        if config and config.dimension:
            return config.dimension

        return await embedder.get_dimension()
