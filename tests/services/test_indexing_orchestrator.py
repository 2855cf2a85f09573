"""
Tests for the indexing orchestrator.

Tests cover:
1. End-to-end indexing of an ask note
2. Status transitions and failure handling
3. Idempotent re-indexing
4. Topic reuse across notes
5. Degrading failures (images, ask topics, interests)
6. Background triggering
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from loguru import logger as loguru_logger

from notegraph.models.knowledge import EntityKind, SourceInfo
from notegraph.models.indexing import RunOutcome
from notegraph.models.note import ImageReference, IndexingStatus, UrlReference
from notegraph.models.portfolio import Portfolio, PortfolioType
from notegraph.utils.exceptions import RecordStoreError, ValidationError

CO_FOUNDER_TEXT = "Looking for a co-founder for a climate app"

CO_FOUNDER_EXTRACTION = {
    "summary": "Seeking a co-founder for a climate-focused app",
    "atomicKnowledge": [
        {"text": "The author is looking for a co-founder for a climate app.", "isAsk": True}
    ],
    "topics": [{"name": "Climate Tech", "description": "Technology addressing climate change."}],
}

POLICY_EXTRACTION = {
    "summary": "Carbon taxes are gaining support.",
    "atomicKnowledge": [
        {"text": "Carbon taxes are gaining support.", "isAsk": False},
        {"text": "Several countries introduced carbon pricing.", "isAsk": False},
    ],
    "topics": [{"name": "Climate Policy", "description": "Government action on climate."}],
}


@pytest.mark.unit
@pytest.mark.asyncio
class TestEndToEnd:
    """Full pipeline runs against fakes and SQLite."""

    async def test_co_founder_note(self, orchestrator, llm, record_store, vector_store, author, make_note):
        """An ask note yields summary, one ask record, a topic and interest."""
        llm.extractions = {CO_FOUNDER_TEXT: CO_FOUNDER_EXTRACTION}
        note = await make_note(CO_FOUNDER_TEXT, author_id=author)

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.COMPLETED
        stored = await record_store.get_note(note.id)
        assert stored.indexing_status == IndexingStatus.COMPLETED
        assert stored.summary == "Seeking a co-founder for a climate-focused app"
        assert stored.compound_text == CO_FOUNDER_TEXT

        records = await record_store.list_atomic_knowledge(SourceInfo(source_id=note.id))
        assert len(records) == 1
        assert records[0].is_ask is True
        assert records[0].assigned_human == ["portfolio_human_1"]

        topic = await record_store.find_entity_by_name(EntityKind.TOPIC, "Climate Tech")
        assert topic is not None
        assert stored.topics == [topic.id]
        assert records[0].topics[0] == topic.id

        interest = await record_store.get_interest(author, topic.id)
        assert interest.aggregate_score == pytest.approx(0.1)

        vectors = await vector_store.get_note_vectors(note.id)
        assert vectors.summary_vector is not None
        assert vectors.compound_text_vector is not None

    async def test_ask_topics_attach_to_asks_only(self, orchestrator, llm, record_store, make_note):
        """Topics mined from asks tag ask records but not the note."""
        llm.extractions = {
            "hiring": {
                "summary": "We ship solar kits and are hiring.",
                "atomicKnowledge": [
                    {"text": "We ship solar kits.", "isAsk": False},
                    {"text": "We need a firmware engineer.", "isAsk": True},
                ],
                "topics": [{"name": "Solar Energy", "description": "Power from sunlight."}],
            }
        }
        llm.ask_topics = {
            "topics": [
                {"name": "Embedded Systems", "description": "Firmware for hardware."},
                {"name": "solar energy", "description": "Duplicate of a known topic."},
            ]
        }
        note = await make_note("We ship solar kits, hiring firmware folks")

        result = await orchestrator.index_note(note.id)

        solar = await record_store.find_entity_by_name(EntityKind.TOPIC, "Solar Energy")
        embedded = await record_store.find_entity_by_name(EntityKind.TOPIC, "Embedded Systems")
        assert result.topic_ids == [solar.id]
        assert result.ask_topic_ids == [embedded.id]

        stored = await record_store.get_note(note.id)
        assert stored.topics == [solar.id]

        records = await record_store.list_atomic_knowledge(SourceInfo(source_id=note.id))
        by_ask = {r.is_ask: r for r in records}
        assert by_ask[False].topics == [solar.id]
        assert by_ask[True].topics == [solar.id, embedded.id]

    async def test_project_portfolios_assigned(self, orchestrator, llm, record_store, author, make_note):
        """Only project portfolios among the note's assignments are stamped."""
        await record_store.add_portfolio(
            Portfolio(id="portfolio_project_1", type=PortfolioType.PROJECTS, user_id=author)
        )
        await record_store.add_portfolio(
            Portfolio(id="portfolio_human_2", type=PortfolioType.HUMAN, user_id="user_2")
        )
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        note = await make_note(
            "carbon taxes",
            author_id=author,
            assigned_portfolios=["portfolio_project_1", "portfolio_human_2", "missing"],
        )

        await orchestrator.index_note(note.id)

        records = await record_store.list_atomic_knowledge(SourceInfo(source_id=note.id))
        assert all(r.assigned_projects == ["portfolio_project_1"] for r in records)
        assert all(r.assigned_human == ["portfolio_human_1"] for r in records)


@pytest.mark.unit
@pytest.mark.asyncio
class TestStatusTransitions:
    """Status field handling."""

    async def test_processing_set_before_extraction(self, orchestrator, llm, record_store, make_note):
        """The note is already `processing` when the extraction call is issued."""
        note = await make_note("Some thoughts on gardening")
        observed = []

        original = llm.complete

        async def spy(prompt, **kwargs):
            if prompt.startswith("Extract information"):
                observed.append(await record_store.get_indexing_status(note.id))
            return await original(prompt, **kwargs)

        llm.complete = spy
        await orchestrator.index_note(note.id)

        assert observed == [IndexingStatus.PROCESSING]

    async def test_extraction_failure_marks_failed(self, orchestrator, llm, record_store, make_note):
        """A failing extraction call is fatal."""
        llm.fail_extraction = True
        note = await make_note("Some thoughts on gardening")

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.FAILED
        assert "extraction model unavailable" in result.error
        assert await record_store.get_indexing_status(note.id) == IndexingStatus.FAILED

    async def test_failure_logged_with_run_context(self, orchestrator, llm, make_note):
        """Failure records carry the run and note ids."""
        records = []
        sink_id = loguru_logger.add(records.append, level="ERROR", format="{message}")
        llm.fail_extraction = True
        note = await make_note("Some thoughts on gardening")

        try:
            result = await orchestrator.index_note(note.id)
        finally:
            loguru_logger.remove(sink_id)

        failures = [r.record for r in records if "Indexing failed" in r.record["message"]]
        assert len(failures) == 1
        assert failures[0]["extra"]["run_id"] == result.run_id
        assert failures[0]["extra"]["note_id"] == note.id
        assert failures[0]["extra"]["error_type"] == "ExtractionError"

    async def test_embedding_failure_marks_failed(self, orchestrator, embedder, record_store, make_note):
        """A failing compound text embedding is fatal."""
        embedder.fail = True
        note = await make_note("Some thoughts on gardening")

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.FAILED
        assert await record_store.get_indexing_status(note.id) == IndexingStatus.FAILED

    async def test_final_write_failure_marks_failed(self, orchestrator, record_store, make_note):
        """A failing final field write is fatal."""
        note = await make_note("Some thoughts on gardening")

        with patch.object(
            record_store,
            "update_note_index",
            new_callable=AsyncMock,
            side_effect=RecordStoreError("disk full"),
        ):
            result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.FAILED
        assert await record_store.get_indexing_status(note.id) == IndexingStatus.FAILED

    async def test_missing_note_fails(self, orchestrator):
        """Unknown note IDs produce a failed run."""
        result = await orchestrator.index_note("note_missing")

        assert result.outcome == RunOutcome.FAILED
        assert "not found" in result.error.lower()

    async def test_deleted_note_skipped(self, orchestrator, llm, record_store, make_note):
        """Soft-deleted notes are not touched."""
        note = await make_note("Old note")
        await record_store.soft_delete_note(note.id)

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.SKIPPED
        assert llm.calls == []
        stored = await record_store.get_note(note.id, include_deleted=True)
        assert stored.indexing_status == IndexingStatus.PENDING

    async def test_empty_note_fails(self, orchestrator, llm, record_store, make_note):
        """A note with nothing to index never reaches the model."""
        note = await make_note("   ")

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.FAILED
        assert llm.extraction_calls == []

    async def test_empty_note_id_rejected(self, orchestrator):
        """Missing note IDs are rejected before anything happens."""
        with pytest.raises(ValidationError):
            await orchestrator.index_note("")

    async def test_failed_note_keeps_partial_writes(self, orchestrator, llm, record_store, make_note):
        """A failure after knowledge writing does not roll those writes back."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        note = await make_note("carbon taxes")

        with patch.object(
            record_store,
            "update_note_index",
            new_callable=AsyncMock,
            side_effect=RecordStoreError("disk full"),
        ):
            await orchestrator.index_note(note.id)

        records = await record_store.list_atomic_knowledge(SourceInfo(source_id=note.id))
        assert len(records) == 2


@pytest.mark.unit
@pytest.mark.asyncio
class TestIdempotence:
    """Re-indexing replaces instead of appending."""

    async def test_reindex_same_note(self, orchestrator, llm, record_store, author, make_note):
        """Indexing twice leaves one record set and the same topics."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        note = await make_note("carbon taxes", author_id=author)

        first = await orchestrator.index_note(note.id)
        second = await orchestrator.index_note(note.id)

        assert first.summary == second.summary
        assert first.topic_ids == second.topic_ids

        records = await record_store.list_atomic_knowledge(SourceInfo(source_id=note.id))
        assert sorted(r.knowledge_text for r in records) == sorted(
            s["text"] for s in POLICY_EXTRACTION["atomicKnowledge"]
        )

        topic = await record_store.get_entity(first.topic_ids[0])
        assert topic.mention_count == 1

    async def test_reindex_after_failure(self, orchestrator, llm, record_store, make_note):
        """A failed note can be re-run to completion."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        llm.fail_extraction = True
        note = await make_note("carbon taxes")
        await orchestrator.index_note(note.id)

        llm.fail_extraction = False
        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.COMPLETED
        assert await record_store.get_indexing_status(note.id) == IndexingStatus.COMPLETED

    async def test_reindex_drops_stale_vectors(self, orchestrator, llm, vector_store, make_note):
        """A summary that disappears also disappears from the vectors."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        note = await make_note("carbon taxes")
        await orchestrator.index_note(note.id)

        llm.extractions = {"carbon": {**POLICY_EXTRACTION, "summary": None}}
        await orchestrator.index_note(note.id)

        vectors = await vector_store.get_note_vectors(note.id)
        assert vectors.summary_vector is None
        assert vectors.compound_text_vector is not None


@pytest.mark.unit
@pytest.mark.asyncio
class TestTopicReuse:
    """Topics are shared across notes by normalized name."""

    async def test_same_topic_two_notes(self, orchestrator, llm, record_store, make_note):
        """Two notes extracting "Climate Policy" share one topic."""
        llm.extractions = {
            "first": {**POLICY_EXTRACTION},
            "second": {
                **POLICY_EXTRACTION,
                "topics": [{"name": "climate  policy", "description": "Policy on climate."}],
            },
        }
        first = await make_note("first note on carbon taxes")
        second = await make_note("second note on emissions trading")

        r1 = await orchestrator.index_note(first.id)
        r2 = await orchestrator.index_note(second.id)

        topics = await record_store.list_entities(EntityKind.TOPIC)
        assert len([t for t in topics if t.normalized_name == "climate policy"]) == 1
        assert r1.topic_ids == r2.topic_ids
        assert topics[0].mention_count == 2
        assert topics[0].description == "Government action on climate."

    async def test_concurrent_runs_share_topic(self, orchestrator, llm, record_store, make_note):
        """Concurrent runs extracting the same name do not duplicate it."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        notes = [await make_note(f"carbon note {i}") for i in range(5)]

        await asyncio.gather(*(orchestrator.index_note(n.id) for n in notes))

        topics = await record_store.list_entities(EntityKind.TOPIC)
        assert len(topics) == 1
        assert topics[0].mention_count == 5


@pytest.mark.unit
@pytest.mark.asyncio
class TestDegradingFailures:
    """Non-fatal failures reduce output but complete the run."""

    async def test_one_of_three_images_fails(self, orchestrator, vision, record_store, make_note):
        """The failing image falls back to its URL, the others are described."""
        vision.descriptions = {
            "https://img.example/a.png": "A wind turbine at sunset",
            "https://img.example/c.png": "A chart of rising temperatures",
        }
        vision.failing = {"https://img.example/b.png"}
        note = await make_note(
            "Renewables update",
            references=[
                ImageReference(url="https://img.example/a.png"),
                ImageReference(url="https://img.example/b.png"),
                ImageReference(url="https://img.example/c.png"),
            ],
        )

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.COMPLETED
        assert result.degraded == ["reference:https://img.example/b.png"]
        stored = await record_store.get_note(note.id)
        assert stored.compound_text == (
            "[Image: A wind turbine at sunset]\n\n"
            "[Image: https://img.example/b.png]\n\n"
            "[Image: A chart of rising temperatures]\n\n"
            "Renewables update"
        )

    async def test_ask_topic_failure(self, orchestrator, llm, record_store, make_note):
        """A failing ask-topic call leaves the primary topics in place."""
        llm.extractions = {CO_FOUNDER_TEXT: CO_FOUNDER_EXTRACTION}
        llm.fail_ask_topics = True
        note = await make_note(CO_FOUNDER_TEXT)

        result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.COMPLETED
        assert "ask_topics" in result.degraded
        assert len(result.topic_ids) == 1
        assert result.ask_count == 1

    async def test_single_topic_failure(self, orchestrator, llm, record_store, make_note):
        """One failing topic write does not lose the others."""
        llm.extractions = {
            "energy": {
                "summary": "Energy note.",
                "atomicKnowledge": ["Batteries store energy."],
                "topics": [
                    {"name": "Batteries", "description": "Energy storage."},
                    {"name": "Grid Storage", "description": "Storage at grid scale."},
                ],
            }
        }
        note = await make_note("energy storage")
        original = record_store.upsert_entity_by_name

        async def flaky(kind, name, description, source_id):
            if name == "Batteries":
                raise RecordStoreError("transient")
            return await original(kind, name, description, source_id)

        with patch.object(record_store, "upsert_entity_by_name", side_effect=flaky):
            result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.COMPLETED
        assert result.degraded == ["topic:Batteries"]
        grid = await record_store.find_entity_by_name(EntityKind.TOPIC, "Grid Storage")
        assert result.topic_ids == [grid.id]

    async def test_interest_failure(self, orchestrator, llm, record_store, make_note):
        """Interest tracking errors never fail the run."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        note = await make_note("carbon taxes")

        with patch.object(
            record_store,
            "add_interest",
            new_callable=AsyncMock,
            side_effect=RecordStoreError("locked"),
        ):
            result = await orchestrator.index_note(note.id)

        assert result.outcome == RunOutcome.COMPLETED
        assert "interest_tracking" in result.degraded


@pytest.mark.unit
@pytest.mark.asyncio
class TestInterestAccumulation:
    """Interest scores add up across notes."""

    async def test_two_notes_same_topic(self, orchestrator, llm, record_store, author, make_note):
        """Two notes on topic T give an aggregate score of 0.2."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        first = await make_note("carbon taxes", author_id=author)
        second = await make_note("more carbon taxes", author_id=author)

        await orchestrator.index_note(first.id)
        result = await orchestrator.index_note(second.id)

        interest = await record_store.get_interest(author, result.topic_ids[0])
        assert interest.aggregate_score == pytest.approx(0.2)
        assert interest.memory_score == pytest.approx(0.1)

    async def test_topicless_note_keeps_memory(self, orchestrator, llm, record_store, author, make_note):
        """A note with no topics does not decay the author's memory scores."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        first = await make_note("carbon taxes", author_id=author)
        second = await make_note("groceries: milk, eggs", author_id=author)

        topic_id = (await orchestrator.index_note(first.id)).topic_ids[0]
        result = await orchestrator.index_note(second.id)

        assert result.outcome == RunOutcome.COMPLETED
        assert result.topic_ids == []
        interest = await record_store.get_interest(author, topic_id)
        assert interest.memory_score == pytest.approx(0.1)
        assert interest.aggregate_score == pytest.approx(0.1)


@pytest.mark.unit
@pytest.mark.asyncio
class TestTrigger:
    """Fire-and-forget triggering."""

    async def test_trigger_runs_in_background(self, orchestrator, llm, record_store, make_note):
        """trigger() returns immediately and the run completes later."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        note = await make_note("carbon taxes")

        task = orchestrator.trigger(note.id)
        assert isinstance(task, asyncio.Task)

        await orchestrator.wait_idle()

        assert task.result().outcome == RunOutcome.COMPLETED
        assert orchestrator.in_flight == 0
        assert await record_store.get_indexing_status(note.id) == IndexingStatus.COMPLETED

    async def test_trigger_rejects_missing_id(self, orchestrator):
        """A missing ID is rejected synchronously."""
        with pytest.raises(ValidationError):
            orchestrator.trigger("")
        assert orchestrator.in_flight == 0

    async def test_reindex_failed_notes(self, orchestrator, llm, record_store, make_note):
        """reindex_by_status re-runs every failed note."""
        llm.extractions = {"carbon": POLICY_EXTRACTION}
        llm.fail_extraction = True
        notes = [await make_note(f"carbon {i}") for i in range(3)]
        for note in notes:
            await orchestrator.index_note(note.id)

        llm.fail_extraction = False
        triggered = await orchestrator.reindex_by_status(IndexingStatus.FAILED)
        await orchestrator.wait_idle()

        assert sorted(triggered) == sorted(n.id for n in notes)
        for note in notes:
            assert await record_store.get_indexing_status(note.id) == IndexingStatus.COMPLETED

    async def test_annotation_and_link(self, orchestrator, llm, record_store, make_note):
        """Annotated note and link preview precede the raw text."""
        original = await make_note("Original post", summary="A post about wind farms")
        note = await make_note(
            "Great point",
            mentioned_note_id=original.id,
            references=[UrlReference(url="https://wind.example", title="Wind Farms")],
        )

        await orchestrator.index_note(note.id)

        stored = await record_store.get_note(note.id)
        assert stored.compound_text == (
            "[Annotated Note: A post about wind farms]\n\n"
            "[URL Reference: Title: Wind Farms, URL: https://wind.example]\n\n"
            "Great point"
        )
