"""
Abstract base class for LLM providers.
Handles text generation with optional JSON-mode output.
"""

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """
    Abstract base for LLM text generation providers.

    Responsibilities:
    - Text completion/generation
    - JSON-mode output for structured extraction
    - Chat-based interactions with an optional system prompt
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        json_mode: bool = False,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        **kwargs,
    ) -> str:
        """
        Generate completion from prompt.

        Args:
            prompt: The user prompt
            system: Optional system prompt
            json_mode: Ask the provider to constrain output to a JSON object
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 = deterministic, 1.0 = creative)
            **kwargs: Provider-specific parameters

        Returns:
            Raw completion text (a JSON document when json_mode is set)

        Raises:
            ValidationError: If the prompt is empty
            LLMError: Provider-specific errors
        """
        pass

    @abstractmethod
    async def close(self):
        """
        Close any open connections.
        Optional to override if provider needs cleanup.
        """
        # Default implementation does nothing
        # Providers should override if cleanup is needed

    @staticmethod
    def build_messages(prompt: str, system: str | None = None) -> list[dict]:
        """Chat message list shared by the chat-style providers."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages
