"""
Abstract base class for vision description providers.
Describes images referenced by notes so they can be indexed as text.
"""

from abc import ABC, abstractmethod

from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

# Placeholder some providers return instead of failing
DESCRIPTION_UNAVAILABLE = "Image description unavailable"


class VisionProvider(ABC):
    """
    Abstract base for image description providers.

    `describe` never raises for an unreachable or undescribable image; it
    returns None and callers fall back to the raw URL. Subclasses implement
    `_describe` and are free to raise VisionError.
    """

    async def describe(self, image_url: str, context: str | None = None) -> str | None:
        """
        Describe an image, focusing on what the surrounding note is about.

        Args:
            image_url: Public URL of the image
            context: Optional note text used as a hint

        Returns:
            Description text, or None if the image could not be described
        """
        prompt = self.build_prompt(context)

        try:
            description = await self._describe(image_url, prompt)
        except Exception as e:
            logger.warning(
                f"Image description failed: {e}",
                extra={"image_url": image_url, "error_type": type(e).__name__},
            )
            return None

        description = (description or "").strip()
        if not description or description == DESCRIPTION_UNAVAILABLE:
            return None
        return description

    @abstractmethod
    async def _describe(self, image_url: str, prompt: str) -> str:
        """
        Call the provider.

        Raises:
            VisionError: If the provider cannot describe the image
        """
        pass

    @abstractmethod
    async def close(self):
        """Close any open connections."""
        pass

    @staticmethod
    def build_prompt(context: str | None = None) -> str:
        """Description prompt, steered by the note text when there is one."""
        if context and context.strip():
            return f"""Describe the content of this image in detail, focusing on information relevant to the following note context: "{context.strip()}"

Extract information from the image that is relevant to the note's topic, purpose, or what the user is looking for. Focus on:
- Elements that relate to the note's context or purpose
- Any text, objects, people, scenes, or concepts that are relevant
- Details that would help understand how the image relates to the note

Be concise but comprehensive, prioritizing information that connects to the note's context."""

        return (
            "Describe the content of this image in detail. Focus on what is visible, "
            "any text, objects, people, scenes, or concepts shown. "
            "Be concise but comprehensive."
        )
