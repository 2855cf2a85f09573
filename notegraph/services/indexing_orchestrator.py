"""
Indexing Orchestrator - runs the note indexing pipeline.

State machine per note:

    pending -> processing -> completed
                          -> failed

`processing` is persisted before any extraction work starts. Fatal errors
(note lookup, extraction, embedding, knowledge record replacement, final
field write) move the note to `failed`. Degrading errors (image
descriptions, ask topics, single topics, interest tracking) are logged and
reported in the run result only.

Re-running a note always starts from scratch: its atomic knowledge records
and vector entry are deleted first, then everything is re-derived.
"""

import asyncio
import time

from notegraph.config import Config
from notegraph.core.embeddings.base import Embedder
from notegraph.core.factory import (
    EmbedderFactory,
    LLMFactory,
    RecordStoreFactory,
    VectorStoreFactory,
    VisionFactory,
)
from notegraph.core.llm.base import LLMProvider
from notegraph.core.record_store.base import RecordStore
from notegraph.core.tokenizer import Tokenizer
from notegraph.core.vector_store.base import VectorStore
from notegraph.core.vision.base import VisionProvider
from notegraph.models.extraction import ExtractionResult
from notegraph.models.indexing import IndexingResult, KnowledgeWriteResult, RunOutcome
from notegraph.models.note import IndexingStatus, Note
from notegraph.services.compound_text import CompoundTextBuilder
from notegraph.services.embedding_stage import EmbeddingStage
from notegraph.services.extraction_engine import ExtractionEngine
from notegraph.services.interest_tracker import InterestTracker
from notegraph.services.knowledge_writer import KnowledgeGraphWriter
from notegraph.services.reference_resolver import ReferenceResolver
from notegraph.utils.exceptions import IndexingError, NotFoundError, ValidationError
from notegraph.utils.id_generator import generate_run_id
from notegraph.utils.logger import ContextLogger, get_logger

logger = get_logger(__name__)


class IndexingOrchestrator:
    """
    Sequences the indexing pipeline for one note at a time.

    Features:
    - Persisted status transitions
    - Cleanup-before-write re-indexing
    - Embedding and knowledge writing in parallel
    - Fire-and-forget triggering with bounded concurrency
    """

    def __init__(
        self,
        config: Config,
        record_store: RecordStore,
        vector_store: VectorStore,
        llm: LLMProvider,
        vision: VisionProvider,
        embedder: Embedder,
        tokenizer: Tokenizer | None = None,
    ):
        """
        Initialize the orchestrator and its pipeline stages.

        Args:
            config: Configuration object
            record_store: Record store (notes, knowledge, topics, interests)
            vector_store: Note vector store
            llm: LLM provider for extraction
            vision: Vision provider for image references
            embedder: Embedder for note and statement vectors
            tokenizer: Tokenizer for embedding input (default: from config)
        """
        self.config = config
        self.record_store = record_store
        self.vector_store = vector_store
        self.llm = llm
        self.vision = vision
        self.embedder = embedder

        self.resolver = ReferenceResolver(vision, call_timeout=config.indexing.call_timeout)
        self.compound_text = CompoundTextBuilder(record_store, self.resolver)
        self.extraction = ExtractionEngine(llm, config)
        self.embedding = EmbeddingStage(embedder, vector_store, config, tokenizer=tokenizer)
        self.writer = KnowledgeGraphWriter(
            record_store, self.extraction, config, embedding=self.embedding
        )
        self.interests = InterestTracker(record_store, config)

        self._semaphore = asyncio.Semaphore(config.indexing.max_concurrent_runs)
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    async def from_config(cls, config: Config) -> "IndexingOrchestrator":
        """
        Build providers and stores from configuration and initialize the stores.

        Raises:
            ConfigurationError: If a provider or backend is not supported
        """
        llm = LLMFactory.create(config.llm)
        vision = VisionFactory.create(config.vision)
        embedder = EmbedderFactory.create(config.embedder)

        record_store = RecordStoreFactory.create(config.store)
        await record_store.initialize()
        logger.info("Record store initialized")

        vector_size = None
        if config.vector_backend == "qdrant":
            vector_size = await EmbedderFactory.get_dimension(embedder, config.embedder)
        vector_store = VectorStoreFactory.create(config, vector_size=vector_size)
        await vector_store.initialize()
        logger.info(f"Vector store initialized ({config.vector_backend})")

        return cls(config, record_store, vector_store, llm, vision, embedder)

    # ═══════════════════════════════════════════════════════════
    # SINGLE RUN
    # ═══════════════════════════════════════════════════════════

    async def index_note(self, note_id: str) -> IndexingResult:
        """
        Run one indexing attempt for a note to completion or failure.

        Args:
            note_id: Note to index

        Returns:
            IndexingResult describing the attempt

        Raises:
            ValidationError: If note_id is empty
        """
        if not note_id or not note_id.strip():
            raise ValidationError("note_id is required")

        run_id = generate_run_id()
        run_logger = logger.bind(run_id=run_id, note_id=note_id)
        start_time = time.time()

        def finish(outcome: RunOutcome, **fields) -> IndexingResult:
            return IndexingResult(
                run_id=run_id,
                note_id=note_id,
                outcome=outcome,
                processing_time_ms=(time.time() - start_time) * 1000,
                **fields,
            )

        try:
            note = await self.record_store.get_note(note_id, include_deleted=True)
            if note is None:
                raise NotFoundError(f"Note not found: {note_id}", context={"note_id": note_id})
        except Exception as e:
            await self._mark_failed(note_id, e, run_logger)
            return finish(RunOutcome.FAILED, error=str(e))

        if note.is_deleted:
            run_logger.info(f"Skipping deleted note {note_id}")
            return finish(RunOutcome.SKIPPED)

        try:
            await self.record_store.set_indexing_status(note_id, IndexingStatus.PROCESSING)
            run_logger.info(f"Indexing note {note_id}")

            await self.cleanup(note_id)

            compound = await self.compound_text.build(note)
            if not compound.text.strip():
                raise IndexingError("Note has no indexable content", context={"note_id": note_id})

            extraction = await self.extraction.extract(compound.text)

            embed_result, knowledge = await asyncio.gather(
                self.embedding.run(note_id, extraction.summary, compound.text),
                self._write_knowledge(note, extraction),
                return_exceptions=True,
            )
            for branch in (embed_result, knowledge):
                if isinstance(branch, BaseException):
                    raise branch

            await self.record_store.update_note_index(
                note_id,
                summary=extraction.summary,
                compound_text=compound.text,
                topics=knowledge.topic_ids,
                intentions=knowledge.intention_ids,
                status=IndexingStatus.COMPLETED,
            )
        except Exception as e:
            await self._mark_failed(note_id, e, run_logger)
            return finish(RunOutcome.FAILED, error=str(e))

        result = finish(
            RunOutcome.COMPLETED,
            summary=extraction.summary,
            compound_text=compound.text,
            topic_ids=knowledge.topic_ids,
            ask_topic_ids=knowledge.ask_topic_ids,
            intention_ids=knowledge.intention_ids,
            knowledge_count=knowledge.knowledge_count,
            ask_count=knowledge.ask_count,
            degraded=compound.degraded + knowledge.degraded,
        )
        run_logger.info(
            f"Indexed note {note_id} in {result.processing_time_ms:.0f}ms",
            extra={
                "topics": len(result.topic_ids),
                "degraded": len(result.degraded),
            },
        )
        return result

    async def cleanup(self, note_id: str) -> None:
        """Delete a note's atomic knowledge and vector entry."""
        await self.writer.delete_for_source(note_id)
        await self.vector_store.delete_note_vectors(note_id)

    async def _write_knowledge(
        self, note: Note, extraction: ExtractionResult
    ) -> KnowledgeWriteResult:
        result = await self.writer.write(note, extraction)

        if not await self.interests.track(note.author_id, result.topic_ids):
            result.degraded.append("interest_tracking")
        return result

    async def _mark_failed(self, note_id: str, error: Exception, run_logger: ContextLogger) -> None:
        run_logger.error(
            f"Indexing failed for {note_id}: {error}",
            extra={"error_type": type(error).__name__},
        )
        try:
            await self.record_store.set_indexing_status(note_id, IndexingStatus.FAILED)
        except Exception as e:
            run_logger.error(
                f"Could not mark {note_id} as failed: {e}",
                extra={"error_type": type(e).__name__},
            )

    # ═══════════════════════════════════════════════════════════
    # BACKGROUND TRIGGERING
    # ═══════════════════════════════════════════════════════════

    def trigger(self, note_id: str) -> asyncio.Task:
        """
        Schedule indexing of a note without waiting for it.

        Safe to call repeatedly for the same note. Must be called from a
        running event loop.

        Returns:
            The scheduled task, resolving to an IndexingResult

        Raises:
            ValidationError: If note_id is empty (nothing is scheduled)
        """
        if not note_id or not note_id.strip():
            raise ValidationError("note_id is required")

        task = asyncio.create_task(self._run_bounded(note_id), name=f"index-note-{note_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_bounded(self, note_id: str) -> IndexingResult:
        async with self._semaphore:
            return await self.index_note(note_id)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait for all triggered runs to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def reindex_by_status(
        self, status: IndexingStatus = IndexingStatus.FAILED
    ) -> list[str]:
        """
        Trigger indexing for every non-deleted note in a status.

        Returns:
            IDs of the notes that were triggered
        """
        note_ids = await self.record_store.list_note_ids_by_status(status)
        for note_id in note_ids:
            self.trigger(note_id)

        logger.info(f"Re-indexing {len(note_ids)} {status.value} notes")
        return note_ids

    async def get_status(self, note_id: str) -> IndexingStatus | None:
        """Current indexing status of a note, None if it does not exist."""
        return await self.record_store.get_indexing_status(note_id)

    # LIFECYCLE MANAGEMENT

    async def close(self) -> None:
        """Wait for in-flight runs, then close stores and providers."""
        logger.info("Shutting down indexing orchestrator")

        await self.wait_idle()

        await self.record_store.close()
        await self.vector_store.close()

        await self.llm.close()
        await self.vision.close()
        await self.embedder.close()

        logger.info("Indexing orchestrator shutdown complete")
