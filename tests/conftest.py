"""
Shared test fixtures for all test modules.

Providers are replaced by scripted fakes so the pipeline runs without any
model server. Stores are real SQLite databases under tmp_path.
"""

import hashlib
import json
from collections.abc import AsyncGenerator

import pytest

from notegraph.config import Config, IndexingConfig, TokenizerConfig
from notegraph.core.embeddings.base import Embedder
from notegraph.core.llm.base import LLMProvider
from notegraph.core.record_store.sqlite_store import SQLiteRecordStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore
from notegraph.core.vision.base import VisionProvider
from notegraph.models.note import Note
from notegraph.models.portfolio import Portfolio, PortfolioType
from notegraph.services.indexing_orchestrator import IndexingOrchestrator
from notegraph.utils.exceptions import EmbeddingError, LLMError, VisionError
from notegraph.utils.id_generator import generate_note_id

EMPTY_EXTRACTION = {"summary": None, "atomicKnowledge": [], "topics": []}


class ScriptedLLM(LLMProvider):
    """
    LLM fake answering from scripted payloads.

    Extraction payloads are keyed by a marker substring of the compound
    text; the first matching marker wins.
    """

    def __init__(
        self,
        extractions: dict[str, dict] | None = None,
        ask_topics: dict | None = None,
        default: dict | None = None,
    ):
        self.extractions = extractions or {}
        self.ask_topics = ask_topics or {"topics": []}
        self.default = default or EMPTY_EXTRACTION
        self.fail_extraction = False
        self.fail_ask_topics = False
        self.calls: list[dict] = []

    @property
    def extraction_calls(self) -> list[dict]:
        return [c for c in self.calls if c["prompt"].startswith("Extract information")]

    @property
    def ask_topic_calls(self) -> list[dict]:
        return [c for c in self.calls if c["prompt"].startswith("Asks:")]

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        json_mode: bool = False,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        **kwargs,
    ) -> str:
        self.calls.append({"prompt": prompt, "system": system, "json_mode": json_mode})

        if prompt.startswith("Asks:"):
            if self.fail_ask_topics:
                raise LLMError("ask topic model unavailable")
            return json.dumps(self.ask_topics)

        if prompt.startswith("Summarize"):
            return "  A short summary.  "

        if self.fail_extraction:
            raise LLMError("extraction model unavailable")

        for marker, payload in self.extractions.items():
            if marker in prompt:
                return json.dumps(payload)
        return json.dumps(self.default)

    async def close(self):
        pass


class FakeVision(VisionProvider):
    """Vision fake with per-URL descriptions and failures."""

    def __init__(self, descriptions: dict[str, str] | None = None, failing: set | None = None):
        self.descriptions = descriptions or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    async def _describe(self, image_url: str, prompt: str) -> str:
        self.calls.append((image_url, prompt))
        if image_url in self.failing:
            raise VisionError(f"cannot fetch {image_url}")
        return self.descriptions.get(image_url, f"A picture at {image_url}")

    async def close(self):
        pass


class FakeEmbedder(Embedder):
    """Deterministic embedder: the same text always maps to the same vector."""

    dimension = 8

    def __init__(self):
        self.fail = False
        self.calls: list[str] = []

    async def embed(self, text: str, **kwargs) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingError("embedding model unavailable")
        digest = hashlib.sha256(text.encode()).digest()
        return [b / 255 for b in digest[: self.dimension]]

    async def close(self):
        pass


@pytest.fixture
def config(tmp_path) -> Config:
    """Test configuration: approximate tokenizer, SQLite in tmp_path."""
    config = Config(
        tokenizer=TokenizerConfig(provider="approximate"),
        indexing=IndexingConfig(call_timeout=5.0),
    )
    config.store.db_path = str(tmp_path / "notegraph.db")
    return config


@pytest.fixture
async def record_store(config) -> AsyncGenerator[SQLiteRecordStore, None]:
    """Initialized SQLite record store."""
    store = SQLiteRecordStore(db_path=config.store.db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def vector_store(config) -> AsyncGenerator[SQLiteVectorStore, None]:
    """Initialized SQLite vector store sharing the record store's file."""
    store = SQLiteVectorStore(db_path=config.store.db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def vision() -> FakeVision:
    return FakeVision()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def orchestrator(config, record_store, vector_store, llm, vision, embedder) -> IndexingOrchestrator:
    """Orchestrator wired to the fakes and the tmp_path stores."""
    return IndexingOrchestrator(config, record_store, vector_store, llm, vision, embedder)


@pytest.fixture
async def author(record_store) -> str:
    """Author with a human portfolio."""
    await record_store.add_portfolio(
        Portfolio(id="portfolio_human_1", type=PortfolioType.HUMAN, user_id="user_1")
    )
    return "user_1"


@pytest.fixture
def make_note(record_store):
    """Factory storing a pending note."""

    async def _make(text: str = "", author_id: str = "user_1", **fields) -> Note:
        note = Note(id=fields.pop("id", generate_note_id()), author_id=author_id, text=text, **fields)
        await record_store.add_note(note)
        return note

    return _make
