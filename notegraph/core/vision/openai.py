"""
OpenAI vision provider using official SDK.
"""

from openai import AsyncOpenAI

from notegraph.core.vision.base import VisionProvider
from notegraph.utils.exceptions import VisionError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIVision(VisionProvider):
    """
    OpenAI multimodal chat model describing images by URL.

    The image URL is passed straight to the API; OpenAI fetches it.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        max_tokens: int = 300,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ):
        """
        Initialize OpenAI vision provider.

        Args:
            api_key: OpenAI API key
            model: Vision-capable chat model
            base_url: Optional custom base URL
            max_tokens: Maximum description length in tokens
            temperature: Sampling temperature
            timeout: Request timeout in seconds
        """
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def _describe(self, image_url: str, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    }
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as e:
            raise VisionError(
                f"OpenAI vision error: {e}",
                context={"model": self.model, "image_url": image_url},
            ) from e

        content = response.choices[0].message.content
        if not content:
            raise VisionError("OpenAI returned empty description", context={"image_url": image_url})
        return content

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
