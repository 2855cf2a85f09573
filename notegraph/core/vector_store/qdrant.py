"""
Qdrant vector store implementation.

One point per note with two named vectors, "summary" and "compound_text".
Points may carry only one of them when an embedding call failed.
"""

from datetime import datetime
from uuid import NAMESPACE_DNS, UUID, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    HnswConfigDiff,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from notegraph.core.vector_store.base import NoteVectors, VectorStore
from notegraph.utils.exceptions import VectorStoreError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

SUMMARY_VECTOR = "summary"
COMPOUND_TEXT_VECTOR = "compound_text"


class QdrantVectorStore(VectorStore):
    """
    Qdrant store for note embeddings.

    Features:
    - Named vectors per note
    - HNSW indexing
    - Optional on-disk vectors
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection_name: str = "note_vectors",
        vector_size: int = 768,
        use_grpc: bool = False,
        on_disk: bool = False,
        timeout: int = 30,
        hnsw_m: int = 16,
        hnsw_ef_construct: int = 100,
    ):
        """
        Initialize Qdrant store.

        Args:
            url: Qdrant URL
            collection_name: Collection name
            vector_size: Embedding dimension
            use_grpc: Use gRPC connection
            on_disk: Store vectors on disk (reduces RAM usage)
            timeout: Request timeout in seconds
            hnsw_m: HNSW M parameter (connections per node)
            hnsw_ef_construct: HNSW ef_construct parameter
        """
        self.url = url
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.use_grpc = use_grpc
        self.on_disk = on_disk
        self.timeout = timeout
        self.hnsw_m = hnsw_m
        self.hnsw_ef_construct = hnsw_ef_construct
        self.client: AsyncQdrantClient | None = None

    def _to_uuid(self, id_str: str) -> str:
        """Convert a note ID to a stable UUID point ID."""
        try:
            UUID(id_str)
            return id_str
        except ValueError:
            return str(uuid5(NAMESPACE_DNS, id_str))

    async def connect(self) -> None:
        """
        Establish connection to Qdrant.

        Raises:
            VectorStoreError: If connection fails
        """
        if self.client is None:
            try:
                self.client = AsyncQdrantClient(
                    url=self.url,
                    prefer_grpc=self.use_grpc,
                    timeout=self.timeout,
                )
            except Exception as e:
                logger.error(
                    f"Failed to connect to Qdrant: {e}",
                    extra={"url": self.url, "error": str(e)},
                )
                raise VectorStoreError(f"Failed to connect to Qdrant: {e}") from e

    def _vector_params(self) -> VectorParams:
        return VectorParams(
            size=self.vector_size,
            distance=Distance.COSINE,
            hnsw_config=HnswConfigDiff(m=self.hnsw_m, ef_construct=self.hnsw_ef_construct),
            on_disk=self.on_disk,
        )

    async def initialize(self) -> None:
        """
        Create the collection if it does not exist.

        Raises:
            VectorStoreError: If initialization fails
        """
        try:
            await self.connect()

            collections = await self.client.get_collections()
            collection_names = [col.name for col in collections.collections]

            if self.collection_name not in collection_names:
                await self.client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config={
                        SUMMARY_VECTOR: self._vector_params(),
                        COMPOUND_TEXT_VECTOR: self._vector_params(),
                    },
                )
                await self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name="note_id",
                    field_schema="keyword",
                )
                logger.info(
                    f"Created Qdrant collection {self.collection_name}",
                    extra={"vector_size": self.vector_size},
                )
        except Exception as e:
            logger.error(
                f"Failed to initialize Qdrant collection: {e}",
                extra={"collection": self.collection_name, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to initialize Qdrant collection: {e}") from e

    async def store_note_vectors(
        self,
        note_id: str,
        summary_vector: list[float] | None,
        compound_text_vector: list[float] | None,
    ) -> None:
        """Store or replace a note's vectors."""
        vectors: dict[str, list[float]] = {}
        if summary_vector is not None:
            vectors[SUMMARY_VECTOR] = summary_vector
        if compound_text_vector is not None:
            vectors[COMPOUND_TEXT_VECTOR] = compound_text_vector

        if not vectors:
            await self.delete_note_vectors(note_id)
            return

        await self.connect()
        try:
            # Upsert replaces the whole point, so a dropped vector does not linger
            await self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    PointStruct(
                        id=self._to_uuid(note_id),
                        vector=vectors,
                        payload={"note_id": note_id, "updated_at": datetime.now().isoformat()},
                    )
                ],
            )
        except Exception as e:
            logger.error(
                f"Failed to upsert note vectors: {e}",
                extra={"note_id": note_id, "error": str(e)},
            )
            raise VectorStoreError(
                f"Failed to upsert note vectors: {e}", context={"note_id": note_id}
            ) from e

    async def get_note_vectors(self, note_id: str) -> NoteVectors | None:
        """Retrieve a note's vectors."""
        await self.connect()
        try:
            records = await self.client.retrieve(
                collection_name=self.collection_name,
                ids=[self._to_uuid(note_id)],
                with_vectors=True,
                with_payload=False,
            )
        except Exception as e:
            raise VectorStoreError(f"Failed to retrieve note vectors: {e}") from e

        if not records:
            return None

        vectors = records[0].vector or {}
        return NoteVectors(
            note_id=note_id,
            summary_vector=vectors.get(SUMMARY_VECTOR),
            compound_text_vector=vectors.get(COMPOUND_TEXT_VECTOR),
        )

    async def delete_note_vectors(self, note_id: str) -> None:
        """Delete a note's point."""
        await self.connect()
        try:
            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=PointIdsList(points=[self._to_uuid(note_id)]),
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to delete note vectors: {e}", context={"note_id": note_id}
            ) from e

    async def close(self) -> None:
        """Close connection."""
        if self.client:
            await self.client.close()
            self.client = None
