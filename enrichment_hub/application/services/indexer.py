"""Transcript indexer: clean, chunk, embed and upsert transcript text."""

from dataclasses import dataclass

from enrichment_hub.application.services.text_cleaning import (
    clean_text,
    split_into_chunks,
)
from enrichment_hub.commons.infrastructure.vectordb.base import (
    PayloadFieldType,
    VectorDBBase,
    VectorDBError,
    VectorPoint,
)
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import LogContext, get_logger, timed
from enrichment_hub.domain.exceptions import (
    EmbeddingException,
    EmptyTranscriptException,
    VectorStoreException,
)
from enrichment_hub.domain.models.chunk import TranscriptChunk
from enrichment_hub.domain.value_objects.chunking_config import ChunkingConfig
from enrichment_hub.infrastructure.embeddings.base import EmbeddingServiceBase

# Payload fields the indexer and retriever filter on
TRANSCRIPT_PAYLOAD_INDEXES: dict[str, PayloadFieldType] = {
    "scope": "keyword",
    "video_id": "keyword",
    "chunk_index": "integer",
}


@dataclass
class IndexingResult:
    """Summary of one indexing run."""

    video_id: str
    scope: str
    chunk_count: int
    word_count: int
    orphans_removed: int = 0


class TranscriptIndexer:
    """Builds the semantic index over a video's transcript.

    Chunk ids are derived from the video id and chunk position, so indexing
    the same transcript twice overwrites the same points. When a transcript
    shrinks, points past the new chunk count are deleted after the upsert.
    """

    def __init__(
        self,
        embedder: EmbeddingServiceBase,
        vector_db: VectorDBBase,
        settings: Settings,
    ) -> None:
        self._embedder = embedder
        self._vector_db = vector_db
        self._collection = settings.vector_db.collections.transcripts
        self._default_scope = settings.vector_db.default_scope
        self._distance = settings.vector_db.distance_metric
        self._chunking = ChunkingConfig(
            chunk_size_words=settings.indexing.chunk_size_words
        )
        self._collection_ready = False
        self._logger = get_logger(__name__)

    async def ensure_collection(self) -> None:
        """Create the transcript collection and payload indexes if missing."""
        if self._collection_ready:
            return
        try:
            created = await self._vector_db.ensure_collection(
                self._collection,
                vector_size=self._embedder.dimensions,
                distance_metric=self._distance,
                payload_indexes=TRANSCRIPT_PAYLOAD_INDEXES,
            )
        except VectorDBError as e:
            raise VectorStoreException("ensure_collection", e.reason) from e
        if created:
            self._logger.info(
                "Created transcript collection",
                extra={"collection": self._collection},
            )
        self._collection_ready = True

    def build_chunks(self, video_id: str, text: str, scope: str) -> list[TranscriptChunk]:
        """Clean and split transcript text into chunks.

        Raises:
            EmptyTranscriptException: If nothing indexable remains.
        """
        if not text or not text.strip():
            raise EmptyTranscriptException(video_id)

        cleaned = clean_text(text)
        if not cleaned:
            raise EmptyTranscriptException(video_id)

        return [
            TranscriptChunk(video_id=video_id, index=i, scope=scope, text=chunk)
            for i, chunk in enumerate(
                split_into_chunks(cleaned, self._chunking.chunk_size_words)
            )
        ]

    @timed
    async def index(
        self,
        video_id: str,
        text: str,
        scope: str | None = None,
    ) -> IndexingResult:
        """Index a full transcript.

        Args:
            video_id: Video the transcript belongs to.
            text: Full transcript text of the normalized track.
            scope: Index scope; defaults to the configured scope.

        Returns:
            Indexing summary.

        Raises:
            EmptyTranscriptException: If the text has nothing to index.
            EmbeddingException: If embedding fails; nothing is written then.
            VectorStoreException: If the vector index fails.
        """
        scope = scope or self._default_scope
        with LogContext(video_id=video_id, scope=scope):
            chunks = self.build_chunks(video_id, text, scope)

            results = await self._embedder.embed_texts([c.text for c in chunks])
            if len(results) != len(chunks):
                raise EmbeddingException(
                    f"expected {len(chunks)} embeddings, got {len(results)}"
                )

            await self.ensure_collection()

            points = [
                VectorPoint(
                    id=chunk.point_id,
                    vector=result.vector,
                    payload=chunk.to_payload(),
                )
                for chunk, result in zip(chunks, results, strict=True)
            ]

            try:
                await self._vector_db.upsert(self._collection, points)
                orphans = await self._vector_db.delete_by_filter(
                    self._collection,
                    {
                        "video_id": video_id,
                        "scope": scope,
                        "chunk_index": {"$gte": len(chunks)},
                    },
                )
            except VectorDBError as e:
                raise VectorStoreException(e.operation, e.reason) from e

            result = IndexingResult(
                video_id=video_id,
                scope=scope,
                chunk_count=len(chunks),
                word_count=sum(c.word_count for c in chunks),
                orphans_removed=orphans,
            )
            self._logger.info(
                "Indexed transcript",
                extra={
                    "chunk_count": result.chunk_count,
                    "word_count": result.word_count,
                    "orphans_removed": orphans,
                },
            )
            return result

    async def remove(self, video_id: str, scope: str | None = None) -> int:
        """Delete every indexed chunk of a video within a scope.

        Returns:
            Number of points removed; zero when nothing was ever indexed.

        Raises:
            VectorStoreException: If the vector index fails.
        """
        scope = scope or self._default_scope
        try:
            if not await self._vector_db.collection_exists(self._collection):
                return 0
            removed = await self._vector_db.delete_by_filter(
                self._collection, {"video_id": video_id, "scope": scope}
            )
        except VectorDBError as e:
            raise VectorStoreException(e.operation, e.reason) from e
        if removed:
            self._logger.info(
                "Removed transcript chunks",
                extra={"video_id": video_id, "scope": scope, "removed": removed},
            )
        return removed
