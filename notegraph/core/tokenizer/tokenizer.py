"""
Token counting utilities for embedding input.

Uses tiktoken for OpenAI-compatible token counting with a
character-based approximation as fallback.
"""

import tiktoken

from notegraph.config import TokenizerConfig


class Tokenizer:
    """
    Token counter that keeps embedding input under the model's limit.

    Compound text can grow long once image descriptions and link previews are
    added; embedding models reject input above their context size.

    Usage:
        tokenizer = Tokenizer()
        count = tokenizer.count_tokens("Hello world")
        text = tokenizer.truncate(long_text)
    """

    def __init__(self, config: TokenizerConfig | None = None):
        """
        Initialize tokenizer with configuration.

        Args:
            config: Optional tokenizer configuration. Uses defaults if not provided.
        """
        self.config = config or TokenizerConfig()
        self._encoder: tiktoken.Encoding | None = None

    @property
    def encoder(self) -> tiktoken.Encoding:
        """Lazy-load tiktoken encoder."""
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding(self.config.model)
        return self._encoder

    def count_tokens(self, text: str) -> int:
        """
        Count tokens using tiktoken (or the estimate in approximate mode).

        Args:
            text: Text to count tokens for

        Returns:
            Token count
        """
        if not text:
            return 0

        if self.config.provider == "approximate":
            return self.estimate_tokens(text)

        return len(self.encoder.encode(text))

    def estimate_tokens(self, text: str) -> int:
        """Fast approximate token count using the configured chars_per_token ratio."""
        if not text:
            return 0
        return int(len(text) / self.config.chars_per_token)

    def fits(self, text: str, max_tokens: int | None = None) -> bool:
        """Whether text is within max_tokens (default: max_embedding_tokens)."""
        limit = max_tokens or self.config.max_embedding_tokens
        return self.count_tokens(text) <= limit

    def truncate(self, text: str, max_tokens: int | None = None) -> str:
        """
        Cut text down to at most max_tokens tokens.

        Args:
            text: Text to truncate
            max_tokens: Token budget (default: max_embedding_tokens)

        Returns:
            The original text if it fits, otherwise its leading tokens
        """
        if not text or self.fits(text, max_tokens):
            return text

        limit = max_tokens or self.config.max_embedding_tokens

        if self.config.provider == "approximate":
            return text[: int(limit * self.config.chars_per_token)]

        return self.encoder.decode(self.encoder.encode(text)[:limit])
