"""Embedding services."""

from enrichment_hub.infrastructure.embeddings.base import (
    EmbeddingResult,
    EmbeddingServiceBase,
)
from enrichment_hub.infrastructure.embeddings.openai_embeddings import OpenAIEmbeddingService

__all__ = [
    # Base classes
    "EmbeddingServiceBase",
    "EmbeddingResult",
    # Implementations
    "OpenAIEmbeddingService",
]
