"""Semantic retriever over the transcript index."""

from typing import Any

from enrichment_hub.application.services.text_cleaning import (
    clean_text,
    contains_disallowed,
)
from enrichment_hub.commons.infrastructure.vectordb.base import (
    VectorDBBase,
    VectorDBError,
)
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.domain.exceptions import VectorStoreException
from enrichment_hub.domain.models.chunk import RetrievalMatch
from enrichment_hub.infrastructure.embeddings.base import EmbeddingServiceBase


class SemanticRetriever:
    """Answers free-text queries with the most similar transcript chunks.

    Queries are cleaned exactly like indexed text so both embeddings live in
    the same space. Results never fall below the threshold, are sorted by
    descending score and never exceed ``top_k``.
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
        self._default_top_k = settings.retrieval.default_top_k
        self._default_threshold = settings.retrieval.default_threshold
        self._collection_seen = False
        self._logger = get_logger(__name__)

    @property
    def default_scope(self) -> str:
        """Scope searched when a query names none."""
        return self._default_scope

    async def _collection_exists(self) -> bool:
        # Nothing has been indexed before the first transcript arrives
        if not self._collection_seen:
            try:
                self._collection_seen = await self._vector_db.collection_exists(
                    self._collection
                )
            except VectorDBError as e:
                raise VectorStoreException(e.operation, e.reason) from e
        return self._collection_seen

    async def query(
        self,
        text: str,
        scope: str | None = None,
        top_k: int | None = None,
        threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[RetrievalMatch]:
        """Find transcript passages relevant to a query.

        Args:
            text: Free-text query.
            scope: Index scope; defaults to the configured scope.
            top_k: Maximum number of matches.
            threshold: Minimum similarity score.
            filters: Extra payload filters, e.g. ``{"video_id": ...}``.

        Returns:
            Matches ordered by descending score; empty when nothing matches
            or the query has no usable words.

        Raises:
            EmbeddingException: If the query cannot be embedded.
            VectorStoreException: If the vector search fails.
        """
        scope = scope or self._default_scope
        top_k = top_k if top_k is not None else self._default_top_k
        threshold = threshold if threshold is not None else self._default_threshold
        if top_k < 1:
            return []

        cleaned = clean_text(text or "")
        if not cleaned or contains_disallowed(cleaned):
            self._logger.debug("Query has no usable words after cleaning")
            return []

        if not await self._collection_exists():
            return []

        embedding = await self._embedder.embed_text(cleaned)

        search_filters = {**(filters or {}), "scope": scope}
        try:
            results = await self._vector_db.search(
                self._collection,
                embedding.vector,
                limit=top_k,
                filters=search_filters,
                score_threshold=threshold,
            )
        except VectorDBError as e:
            raise VectorStoreException(e.operation, e.reason) from e

        matches = [
            RetrievalMatch(
                source_id=str(r.payload.get("video_id", "")),
                chunk_id=str(r.payload.get("chunk_id", r.id)),
                chunk_text=str(r.payload.get("text", "")),
                score=r.score,
            )
            for r in results
            if r.score >= threshold
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        matches = matches[:top_k]

        self._logger.debug(
            "Retrieval finished",
            extra={"scope": scope, "candidates": len(results), "matches": len(matches)},
        )
        return matches
