"""
Tests for the embedding input tokenizer.
"""

from unittest.mock import MagicMock, patch

import pytest

from notegraph.core.tokenizer import Tokenizer, TokenizerConfig


class FakeEncoding:
    """Whitespace encoding standing in for a tiktoken Encoding."""

    def encode(self, text: str) -> list[str]:
        return text.split()

    def decode(self, tokens: list[str]) -> str:
        return " ".join(tokens)


@pytest.fixture
def approximate():
    """Approximate tokenizer: 4 characters per token."""
    return Tokenizer(TokenizerConfig(provider="approximate", max_embedding_tokens=10))


@pytest.mark.unit
class TestApproximateTokenizer:
    """Test character-based counting and truncation."""

    def test_count_tokens(self, approximate):
        """Test estimate uses chars_per_token."""
        assert approximate.count_tokens("a" * 40) == 10
        assert approximate.count_tokens("") == 0

    def test_fits(self, approximate):
        """Test limit check against max_embedding_tokens."""
        assert approximate.fits("a" * 40)
        assert not approximate.fits("a" * 44)
        assert approximate.fits("a" * 44, max_tokens=20)

    def test_truncate_short_text_unchanged(self, approximate):
        """Test text within the limit is returned as is."""
        assert approximate.truncate("short text") == "short text"

    def test_truncate_long_text(self, approximate):
        """Test long text is cut to the character budget."""
        assert approximate.truncate("b" * 100) == "b" * 40

    def test_no_encoder_loaded(self, approximate):
        """Test approximate mode never loads tiktoken."""
        with patch("notegraph.core.tokenizer.tokenizer.tiktoken.get_encoding") as mock_get:
            approximate.count_tokens("some text")
            approximate.truncate("c" * 100)
            mock_get.assert_not_called()


@pytest.mark.unit
class TestTiktokenTokenizer:
    """Test tiktoken-backed counting with a patched encoding."""

    def test_count_tokens(self):
        """Test tokens are counted with the encoding."""
        with patch(
            "notegraph.core.tokenizer.tokenizer.tiktoken.get_encoding",
            return_value=FakeEncoding(),
        ) as mock_get:
            tokenizer = Tokenizer(TokenizerConfig(model="cl100k_base"))

            assert tokenizer.count_tokens("one two three") == 3
            mock_get.assert_called_once_with("cl100k_base")

    def test_encoder_is_cached(self):
        """Test the encoding is loaded once."""
        with patch(
            "notegraph.core.tokenizer.tokenizer.tiktoken.get_encoding",
            return_value=MagicMock(encode=MagicMock(return_value=[1, 2])),
        ) as mock_get:
            tokenizer = Tokenizer()
            tokenizer.count_tokens("a")
            tokenizer.count_tokens("b")

            mock_get.assert_called_once()

    def test_truncate(self):
        """Test truncation keeps the leading tokens."""
        with patch(
            "notegraph.core.tokenizer.tokenizer.tiktoken.get_encoding",
            return_value=FakeEncoding(),
        ):
            tokenizer = Tokenizer(TokenizerConfig(max_embedding_tokens=3))

            assert tokenizer.truncate("one two three four five") == "one two three"
