"""
Factory for creating vision providers.
"""

from notegraph.config import VisionConfig
from notegraph.core.vision.base import VisionProvider
from notegraph.core.vision.ollama import OllamaVision
from notegraph.core.vision.openai import OpenAIVision
from notegraph.utils.exceptions import ConfigurationError


class VisionFactory:
    """Factory for creating vision providers from configuration."""

    @staticmethod
    def create(config: VisionConfig) -> VisionProvider:
        """
        Create vision provider from configuration.

        Raises:
            ConfigurationError: If provider is not supported or misconfigured
        """
        if config.provider == "ollama":
            return OllamaVision(
                host=config.base_url,
                model=config.model,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required for the vision provider")
            return OpenAIVision(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported vision provider: {config.provider}")
