"""
NoteGraph FastAPI Application

A REST API server for the NoteGraph indexing pipeline.
Provides the fire-and-forget indexing trigger, status polling and re-indexing.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AliasChoices, BaseModel, Field

from notegraph.config import Config
from notegraph.models.note import IndexingStatus
from notegraph.services.indexing_orchestrator import IndexingOrchestrator
from notegraph.utils.exceptions import ValidationError
from notegraph.utils.logger import get_logger, setup_logging

# Global orchestrator instance
orchestrator: IndexingOrchestrator | None = None
logger = get_logger(__name__)


# Pydantic models for API
class IndexNoteRequest(BaseModel):
    """Request model for triggering indexing."""

    note_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("note_id", "noteId"),
        description="Note to index",
    )


class IndexNoteResponse(BaseModel):
    """Acknowledgement of a scheduled indexing run."""

    accepted: bool
    note_id: str


class IndexingStatusResponse(BaseModel):
    """Indexing status of a note."""

    note_id: str
    indexing_status: IndexingStatus


class ReindexRequest(BaseModel):
    """Request model for batch re-indexing."""

    status: IndexingStatus = Field(
        default=IndexingStatus.FAILED, description="Re-index notes in this status"
    )


class ReindexResponse(BaseModel):
    """Notes scheduled for re-indexing."""

    triggered: int
    note_ids: list[str]


class TopicInterestResult(BaseModel):
    """Topic interest of a user."""

    topic_id: str
    name: str
    description: str
    memory_score: float
    aggregate_score: float


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    orchestrator_initialized: bool
    in_flight: int


def _require_orchestrator() -> IndexingOrchestrator:
    if not orchestrator:
        raise HTTPException(status_code=503, detail="Orchestrator not initialized")
    return orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global orchestrator

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting NoteGraph server")
    logger.info(
        f"Configuration: LLM={config.llm.provider}/{config.llm.model}, "
        f"Vision={config.vision.provider}/{config.vision.model}, "
        f"Embedder={config.embedder.provider}/{config.embedder.model}, "
        f"Variant={config.indexing.pipeline_variant}, Vectors={config.vector_backend}"
    )

    orchestrator = await IndexingOrchestrator.from_config(config)
    logger.info("NoteGraph orchestrator initialized")

    yield

    # Cleanup
    logger.info("Shutting down NoteGraph server")
    await orchestrator.close()
    orchestrator = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="NoteGraph API",
    description="Background indexing of notes into a topic and knowledge graph",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if orchestrator else "initializing",
        orchestrator_initialized=orchestrator is not None,
        in_flight=orchestrator.in_flight if orchestrator else 0,
    )


# Indexing endpoints
@app.post("/index-note", response_model=IndexNoteResponse, status_code=202)
async def index_note(request: IndexNoteRequest):
    """
    Schedule indexing of a note.

    Returns as soon as the run is scheduled; poll the status endpoint for
    the outcome. Calling it again for the same note re-indexes from scratch.
    """
    engine = _require_orchestrator()

    if not request.note_id or not request.note_id.strip():
        raise HTTPException(status_code=400, detail="note_id is required")

    try:
        engine.trigger(request.note_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e

    return IndexNoteResponse(accepted=True, note_id=request.note_id)


@app.get("/notes/{note_id}/indexing-status", response_model=IndexingStatusResponse)
async def get_indexing_status(note_id: str):
    """Current indexing status of a note."""
    engine = _require_orchestrator()

    status = await engine.get_status(note_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Note not found: {note_id}")

    return IndexingStatusResponse(note_id=note_id, indexing_status=status)


@app.post("/notes/reindex", response_model=ReindexResponse, status_code=202)
async def reindex_notes(request: ReindexRequest):
    """Schedule re-indexing of every non-deleted note in a status."""
    engine = _require_orchestrator()

    try:
        note_ids = await engine.reindex_by_status(request.status)
    except Exception as e:
        logger.error(f"Error scheduling re-indexing: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return ReindexResponse(triggered=len(note_ids), note_ids=note_ids)


@app.get("/users/{user_id}/interests", response_model=list[TopicInterestResult])
async def get_user_interests(user_id: str, limit: int = Query(default=5, ge=1, le=100)):
    """A user's top topics by recent interest."""
    engine = _require_orchestrator()

    interests = await engine.interests.get_top_interests(user_id, limit=limit)
    return [
        TopicInterestResult(
            topic_id=i.topic.id,
            name=i.topic.name,
            description=i.topic.description,
            memory_score=i.memory_score,
            aggregate_score=i.aggregate_score,
        )
        for i in interests
    ]
