"""Vector database abstractions and implementations."""

from enrichment_hub.commons.infrastructure.vectordb.base import (
    PayloadFieldType,
    SearchResult,
    VectorDBBase,
    VectorDBError,
    VectorPoint,
)
from enrichment_hub.commons.infrastructure.vectordb.qdrant_provider import QdrantVectorDB

__all__ = [
    # Base classes
    "PayloadFieldType",
    "SearchResult",
    "VectorDBBase",
    "VectorDBError",
    "VectorPoint",
    # Implementations
    "QdrantVectorDB",
]
