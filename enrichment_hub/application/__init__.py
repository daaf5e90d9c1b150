"""Application layer - use cases and orchestration.

This layer contains:
- Services: registry, dispatch, callbacks, indexing and retrieval
- DTOs: Data transfer objects for API boundaries
"""

from enrichment_hub.application.dtos import (
    IngestVideoRequest,
    IngestVideoResponse,
    QueryRequest,
    QueryResponse,
)
from enrichment_hub.application.services import (
    EnrichmentCallbackHandler,
    EnrichmentDispatcher,
    SemanticRetriever,
    TranscriptIndexer,
    VideoIngestionService,
    VideoRegistry,
)

__all__ = [
    # DTOs
    "IngestVideoRequest",
    "IngestVideoResponse",
    "QueryRequest",
    "QueryResponse",
    # Services
    "EnrichmentCallbackHandler",
    "EnrichmentDispatcher",
    "SemanticRetriever",
    "TranscriptIndexer",
    "VideoIngestionService",
    "VideoRegistry",
]
