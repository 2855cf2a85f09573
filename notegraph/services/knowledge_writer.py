"""
Knowledge graph writer.

Merges a note's extracted topics (and intentions) into the shared entity
graph and replaces the note's atomic knowledge records.

Flow:
1. Resolve topics by normalized name (reuse or create), one outcome per topic
2. Resolve intentions the same way (intentions variant)
3. Mine and resolve extra topics implied by the asks (asks variant)
4. Delete the note's previous atomic knowledge
5. Insert one record per statement, visible to the author's human portfolio
   and the note's project portfolios
"""

from notegraph.config import Config
from notegraph.core.record_store.base import RecordStore
from notegraph.models.extraction import ExtractedEntity, ExtractionResult
from notegraph.models.indexing import KnowledgeWriteResult
from notegraph.models.knowledge import AtomicKnowledge, EntityKind, SourceInfo, SourceType
from notegraph.models.note import Note
from notegraph.models.portfolio import PortfolioType
from notegraph.services.embedding_stage import EmbeddingStage
from notegraph.services.extraction_engine import ExtractionEngine
from notegraph.utils.id_generator import generate_knowledge_id
from notegraph.utils.logger import get_logger
from notegraph.utils.results import Outcome, failures, successes

logger = get_logger(__name__)


def note_source(note_id: str) -> SourceInfo:
    """Source descriptor of a note."""
    return SourceInfo(source_type=SourceType.NOTE, source_id=note_id)


class KnowledgeGraphWriter:
    """
    Writes topics, intentions and atomic knowledge for one note.

    A failing topic or intention is logged and skipped; the ids that did
    resolve are still used. Failure to replace the atomic knowledge records
    propagates.
    """

    def __init__(
        self,
        record_store: RecordStore,
        extraction: ExtractionEngine,
        config: Config,
        embedding: EmbeddingStage | None = None,
    ):
        """
        Initialize knowledge graph writer.

        Args:
            record_store: Record store
            extraction: Extraction engine, used for ask-topic mining
            config: Configuration object
            embedding: Embedding stage for statement vectors (optional)
        """
        self.record_store = record_store
        self.extraction = extraction
        self.config = config
        self.embedding = embedding

    async def resolve_entities(
        self, kind: EntityKind, entities: list[ExtractedEntity], source_id: str
    ) -> list[Outcome[str]]:
        """
        Look up or create each entity by normalized name.

        Returns:
            One outcome per entity, holding the entity ID on success
        """
        outcomes: list[Outcome[str]] = []
        for entity in entities:
            try:
                stored = await self.record_store.upsert_entity_by_name(
                    kind, entity.name, entity.description, source_id
                )
            except Exception as e:
                logger.error(
                    f"Failed to process {kind.value} {entity.name}: {e}",
                    extra={"source_id": source_id, "error_type": type(e).__name__},
                )
                outcomes.append(Outcome.failure(entity.name, e))
                continue
            outcomes.append(Outcome.success(entity.name, stored.id))
        return outcomes

    async def resolve_portfolios(self, note: Note) -> tuple[list[str], list[str]]:
        """
        Portfolios the note's knowledge is visible to.

        Returns:
            (human portfolio IDs, project portfolio IDs)
        """
        portfolios = await self.record_store.get_portfolios(note.assigned_portfolios)
        project_ids = [p.id for p in portfolios if p.type == PortfolioType.PROJECTS]

        human = await self.record_store.get_human_portfolio(note.author_id)
        human_ids = [human.id] if human else []

        return human_ids, project_ids

    async def mine_ask_topics(
        self, note_id: str, asks: list[str], known_topics: list[ExtractedEntity]
    ) -> list[ExtractedEntity] | None:
        """
        Secondary extraction of topics implied by asks.

        Returns:
            Additional topics, or None if the call failed
        """
        try:
            return await self.extraction.extract_ask_topics(asks, known_topics)
        except Exception as e:
            logger.warning(
                f"Failed to extract additional topics from asks: {e}",
                extra={"note_id": note_id, "error_type": type(e).__name__},
            )
            return None

    async def delete_for_source(self, note_id: str) -> int:
        """Delete a note's atomic knowledge records."""
        deleted = await self.record_store.delete_atomic_knowledge_by_source(note_source(note_id))
        if deleted:
            logger.debug(f"Removed {deleted} prior knowledge records", extra={"note_id": note_id})
        return deleted

    async def write(self, note: Note, extraction: ExtractionResult) -> KnowledgeWriteResult:
        """
        Write the knowledge graph for a note.

        Args:
            note: Note being indexed
            extraction: Validated extraction output

        Returns:
            Resolved entity IDs, record counts and degraded steps

        Raises:
            RecordStoreError: If portfolios cannot be read or records cannot be replaced
        """
        result = KnowledgeWriteResult()

        # Topics
        topic_outcomes = await self.resolve_entities(EntityKind.TOPIC, extraction.topics, note.id)
        result.topic_ids = list(dict.fromkeys(successes(topic_outcomes)))
        result.degraded.extend(f"topic:{o.item}" for o in failures(topic_outcomes))

        # Intentions
        if self.extraction.extracts_intentions and extraction.intentions:
            intention_outcomes = await self.resolve_entities(
                EntityKind.INTENTION, extraction.intentions, note.id
            )
            result.intention_ids = list(dict.fromkeys(successes(intention_outcomes)))
            result.degraded.extend(f"intention:{o.item}" for o in failures(intention_outcomes))

        # Topics implied by asks
        asks = [s.text for s in extraction.asks]
        if self.extraction.mines_ask_topics and asks:
            additional = await self.mine_ask_topics(note.id, asks, extraction.topics)
            if additional is None:
                result.degraded.append("ask_topics")
            elif additional:
                ask_outcomes = await self.resolve_entities(EntityKind.TOPIC, additional, note.id)
                result.ask_topic_ids = [
                    topic_id
                    for topic_id in dict.fromkeys(successes(ask_outcomes))
                    if topic_id not in result.topic_ids
                ]
                result.degraded.extend(f"ask_topic:{o.item}" for o in failures(ask_outcomes))

        # Atomic knowledge
        human_ids, project_ids = await self.resolve_portfolios(note)
        records = await self._build_records(
            note, extraction, human_ids, project_ids, result.topic_ids, result.ask_topic_ids
        )

        await self.delete_for_source(note.id)
        await self.record_store.insert_atomic_knowledge(records)

        result.ask_count = sum(1 for r in records if r.is_ask)
        result.knowledge_count = len(records) - result.ask_count

        logger.info(
            f"Knowledge written for {note.id}",
            extra={
                "topics": len(result.topic_ids),
                "ask_topics": len(result.ask_topic_ids),
                "intentions": len(result.intention_ids),
                "knowledge": result.knowledge_count,
                "asks": result.ask_count,
            },
        )
        return result

    async def _build_records(
        self,
        note: Note,
        extraction: ExtractionResult,
        human_ids: list[str],
        project_ids: list[str],
        topic_ids: list[str],
        ask_topic_ids: list[str],
    ) -> list[AtomicKnowledge]:
        statements = extraction.atomic_knowledge
        vectors = None
        if self.embedding and self.config.indexing.embed_atomic_knowledge and statements:
            vectors = await self.embedding.embed_statements([s.text for s in statements])

        source = note_source(note.id)
        records = []
        for i, statement in enumerate(statements):
            topics = topic_ids + ask_topic_ids if statement.is_ask else topic_ids
            records.append(
                AtomicKnowledge(
                    id=generate_knowledge_id(),
                    knowledge_text=statement.text,
                    is_ask=statement.is_ask,
                    source_info=source,
                    assigned_human=list(human_ids),
                    assigned_projects=list(project_ids),
                    topics=list(topics),
                    knowledge_vector=vectors[i] if vectors else None,
                )
            )
        return records
