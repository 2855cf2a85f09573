"""
Ollama vision provider using native ollama-python SDK.
"""

import httpx
import ollama

from notegraph.core.vision.base import VisionProvider
from notegraph.utils.exceptions import VisionError


class OllamaVision(VisionProvider):
    """
    Ollama multimodal model (llava, moondream, ...) describing images.

    Ollama only accepts image bytes, so the image is downloaded first.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llava:7b",
        max_tokens: int = 300,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ):
        """
        Initialize Ollama vision provider.

        Args:
            host: Ollama server URL
            model: Multimodal model name
            max_tokens: Maximum description length in tokens
            temperature: Sampling temperature
            timeout: Request timeout in seconds, also used for the image download
        """
        self.host = host
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

        self.client = ollama.AsyncClient(host=host, timeout=timeout)
        self.http = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def _fetch_image(self, image_url: str) -> bytes:
        try:
            response = await self.http.get(image_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise VisionError(
                f"Failed to download image: {e}", context={"image_url": image_url}
            ) from e

        content_type = response.headers.get("content-type", "")
        if content_type and not content_type.startswith("image/"):
            raise VisionError(
                f"URL is not an image ({content_type})", context={"image_url": image_url}
            )
        return response.content

    async def _describe(self, image_url: str, prompt: str) -> str:
        image = await self._fetch_image(image_url)

        try:
            response = await self.client.chat(
                model=self.model,
                messages=[{"role": "user", "content": prompt, "images": [image]}],
                options={"temperature": self.temperature, "num_predict": self.max_tokens},
            )
        except Exception as e:
            raise VisionError(
                f"Ollama vision failed (model={self.model}): {e}",
                context={"image_url": image_url},
            ) from e

        content = response["message"]["content"]
        if not content:
            raise VisionError("Ollama returned empty description", context={"image_url": image_url})
        return content

    async def close(self):
        """Close the download client."""
        await self.http.aclose()
