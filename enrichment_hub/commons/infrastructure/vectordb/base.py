"""Abstract base class for vector database operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from enrichment_hub.commons.infrastructure.health import HealthStatus

PayloadFieldType = Literal["keyword", "integer"]


class VectorDBError(Exception):
    """Raised when the vector database fails an operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


@dataclass
class VectorPoint:
    """A vector with its ID and payload."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """Result from a vector search."""

    id: str
    score: float
    payload: dict[str, Any]


class VectorDBBase(ABC):
    """Abstract base class for vector database operations.

    Filters are plain dicts shared by every method:
    - Equality: {"field": "value"}
    - Range: {"field": {"$gte": 10, "$lt": 20}}
    - In list: {"field": {"$in": [1, 2, 3]}}
    """

    @abstractmethod
    async def ensure_collection(
        self,
        name: str,
        vector_size: int,
        distance_metric: Literal["cosine", "euclidean", "dot"] = "cosine",
        payload_indexes: dict[str, PayloadFieldType] | None = None,
    ) -> bool:
        """Create a collection and its payload indexes if missing.

        Args:
            name: Collection name.
            vector_size: Dimension of vectors.
            distance_metric: Similarity metric.
            payload_indexes: Payload fields to index for filtering.

        Returns:
            True if created, False if it already existed.
        """

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        points: list[VectorPoint],
    ) -> int:
        """Insert or replace vectors by ID.

        Returns:
            Count of upserted points.
        """

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            collection: Collection name.
            query_vector: Query embedding.
            limit: Maximum results to return.
            filters: Optional payload filters.
            score_threshold: Minimum similarity score.

        Returns:
            List of search results sorted by similarity.
        """

    @abstractmethod
    async def delete_by_filter(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        """Delete vectors matching filter.

        Returns:
            Count of deleted vectors.
        """

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count vectors in collection, optionally filtered."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    async def close(self) -> None:  # noqa: B027
        """Release client resources. No-op by default."""
