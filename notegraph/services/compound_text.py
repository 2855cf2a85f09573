"""
Compound text construction.

Compound text is the single string a note is extracted and embedded from:

    [Annotated Note: <summary or text of the annotated note>]

    [Image: <description>]            (one per reference, in order)
    [URL Reference: Host: ..., Title: ..., URL: ..., Description: ...]

    <the note's own text>

Fragments are separated by a blank line. The annotated note always comes
first and the raw text always comes last.
"""

from notegraph.core.record_store.base import RecordStore
from notegraph.models.indexing import CompoundText
from notegraph.models.note import Note
from notegraph.services.reference_resolver import ReferenceResolver
from notegraph.utils.exceptions import StoreError
from notegraph.utils.logger import get_logger
from notegraph.utils.results import failures

logger = get_logger(__name__)

FRAGMENT_SEPARATOR = "\n\n"


def assemble_compound_text(
    annotated_text: str | None,
    reference_fragments: list[str],
    text: str | None,
) -> str:
    """
    Join the parts of a compound text in their fixed order.

    Args:
        annotated_text: Summary or text of the annotated note, if any
        reference_fragments: Rendered reference fragments, in reference order
        text: The note's raw text

    Returns:
        Compound text
    """
    parts = []
    if annotated_text:
        parts.append(f"[Annotated Note: {annotated_text}]")
    parts.extend(reference_fragments)
    if text:
        parts.append(text)
    return FRAGMENT_SEPARATOR.join(parts)


class CompoundTextBuilder:
    """Builds compound text for notes."""

    def __init__(self, record_store: RecordStore, resolver: ReferenceResolver):
        self.record_store = record_store
        self.resolver = resolver

    async def build(self, note: Note) -> CompoundText:
        """
        Build the compound text of a note.

        Reference and annotated-note lookups degrade instead of failing;
        what was lost is listed in the result's `degraded`.
        """
        degraded: list[str] = []

        annotated_text = None
        if note.mentioned_note_id:
            try:
                annotated_text = await self._annotated_text(note.mentioned_note_id)
            except StoreError as e:
                logger.warning(
                    f"Annotated note lookup failed: {e}",
                    extra={"note_id": note.id, "mentioned_note_id": note.mentioned_note_id},
                )
                degraded.append(f"annotated_note:{note.mentioned_note_id}")

        outcomes = await self.resolver.resolve(note.references, context=note.text)
        for failed in failures(outcomes):
            degraded.append(f"reference:{failed.item}")

        resolved = [outcome.value for outcome in outcomes]
        text = assemble_compound_text(
            annotated_text, [ref.render() for ref in resolved], note.text
        )

        logger.debug(
            f"Built compound text for {note.id}",
            extra={"references": len(resolved), "length": len(text)},
        )

        return CompoundText(
            text=text,
            annotated_text=annotated_text,
            references=resolved,
            degraded=degraded,
        )

    async def _annotated_text(self, mentioned_note_id: str) -> str | None:
        mentioned = await self.record_store.get_note(mentioned_note_id)
        if mentioned is None:
            return None
        return mentioned.summary or mentioned.text or None
