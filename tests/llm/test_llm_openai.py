"""
Tests for OpenAI LLM provider.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notegraph.core.llm.openai import OpenAILLM
from notegraph.utils.exceptions import LLMError, ValidationError


def _response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def openai_llm():
    """Create OpenAI LLM for testing."""
    return OpenAILLM(api_key="sk-test", model="gpt-4o-mini")


@pytest.mark.unit
@pytest.mark.asyncio
class TestOpenAILLM:
    """Test OpenAI LLM provider."""

    async def test_initialization(self, openai_llm):
        """Test provider initialization."""
        assert openai_llm.model == "gpt-4o-mini"
        assert openai_llm.client is not None

    async def test_complete_simple(self, openai_llm):
        """Test simple text completion."""
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = _response("Seeking a co-founder.")

            result = await openai_llm.complete("Summarize this text", max_tokens=50)

            assert result == "Seeking a co-founder."
            params = mock_create.call_args.kwargs
            assert params["model"] == "gpt-4o-mini"
            assert params["max_tokens"] == 50
            assert "response_format" not in params

    async def test_json_mode(self, openai_llm):
        """Test JSON mode requests a JSON object."""
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = _response('{"summary": null}')

            await openai_llm.complete("Extract information", json_mode=True)

            params = mock_create.call_args.kwargs
            assert params["response_format"] == {"type": "json_object"}

    async def test_system_prompt(self, openai_llm):
        """Test system prompt is sent first."""
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = _response("ok")

            await openai_llm.complete("hello", system="Be brief.")

            messages = mock_create.call_args.kwargs["messages"]
            assert [m["role"] for m in messages] == ["system", "user"]

    async def test_empty_prompt(self, openai_llm):
        """Test empty prompt raises ValidationError."""
        with pytest.raises(ValidationError):
            await openai_llm.complete("")

    async def test_empty_content(self, openai_llm):
        """Test missing content raises LLMError."""
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = _response(None)

            with pytest.raises(LLMError, match="empty content"):
                await openai_llm.complete("test")

    async def test_api_error(self, openai_llm):
        """Test API errors are wrapped."""
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.side_effect = Exception("rate limited")

            with pytest.raises(LLMError, match="OpenAI API error"):
                await openai_llm.complete("test")
