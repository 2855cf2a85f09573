"""
Reference resolution.

Turns a note's ordered references into text fragments. Images are described
by the vision provider with the note text as a hint; links are rendered from
whatever preview metadata is present. A reference never fails the note: an
image that cannot be described is represented by its raw URL.
"""

import asyncio

from notegraph.core.vision.base import VisionProvider
from notegraph.models.indexing import ResolvedReference
from notegraph.models.note import ImageReference, NoteReference, UrlReference
from notegraph.utils.logger import get_logger
from notegraph.utils.results import Outcome

logger = get_logger(__name__)


def format_url_reference(ref: UrlReference) -> str:
    """Labeled fields of a link preview, skipping the missing ones."""
    fields = []
    if ref.host_name:
        fields.append(f"Host: {ref.host_name}")
    if ref.title:
        fields.append(f"Title: {ref.title}")
    if ref.url:
        fields.append(f"URL: {ref.url}")
    if ref.description:
        fields.append(f"Description: {ref.description}")

    return ", ".join(fields) if fields else ref.url


class ReferenceResolver:
    """
    Resolves note references into fragments, one per reference, in order.

    Image descriptions run concurrently; each call is bounded by
    `call_timeout` seconds.
    """

    def __init__(self, vision: VisionProvider, call_timeout: float = 60.0):
        self.vision = vision
        self.call_timeout = call_timeout

    async def resolve(
        self, references: list[NoteReference], context: str | None = None
    ) -> list[Outcome[ResolvedReference]]:
        """
        Resolve references into fragments.

        Args:
            references: Ordered note references
            context: Note text, passed to the vision provider as a hint

        Returns:
            One outcome per reference, in reference order. A failed outcome
            still carries a fallback fragment as its value.
        """
        return list(
            await asyncio.gather(*(self._resolve_one(ref, context) for ref in references))
        )

    async def _resolve_one(
        self, ref: NoteReference, context: str | None
    ) -> Outcome[ResolvedReference]:
        if isinstance(ref, ImageReference):
            return await self._describe_image(ref, context)

        return Outcome.success(
            ref.url, ResolvedReference(kind="url", content=format_url_reference(ref))
        )

    async def _describe_image(
        self, ref: ImageReference, context: str | None
    ) -> Outcome[ResolvedReference]:
        error: Exception | None = None
        description = None

        try:
            description = await asyncio.wait_for(
                self.vision.describe(ref.url, context), timeout=self.call_timeout
            )
        except Exception as e:
            error = e

        if description:
            return Outcome.success(
                ref.url, ResolvedReference(kind="image", content=description)
            )

        logger.warning(
            "Falling back to raw image URL",
            extra={
                "image_url": ref.url,
                "error_type": type(error).__name__ if error else "NoDescription",
            },
        )
        return Outcome(
            item=ref.url,
            value=ResolvedReference(kind="image", content=ref.url, fallback=True),
            error=error or ValueError("no description returned"),
        )
