"""Application services for video registration, enrichment and retrieval."""

from enrichment_hub.application.services.background import (
    BackgroundTaskRunner,
    DeadLetter,
)
from enrichment_hub.application.services.callbacks import EnrichmentCallbackHandler
from enrichment_hub.application.services.dispatcher import (
    DispatchOutcome,
    DispatchStatus,
    EnrichmentDispatcher,
)
from enrichment_hub.application.services.indexer import (
    IndexingResult,
    TranscriptIndexer,
)
from enrichment_hub.application.services.ingestion import VideoIngestionService
from enrichment_hub.application.services.registry import VideoRegistry
from enrichment_hub.application.services.retriever import SemanticRetriever

__all__ = [
    "BackgroundTaskRunner",
    "DeadLetter",
    "DispatchOutcome",
    "DispatchStatus",
    "EnrichmentCallbackHandler",
    "EnrichmentDispatcher",
    "IndexingResult",
    "SemanticRetriever",
    "TranscriptIndexer",
    "VideoIngestionService",
    "VideoRegistry",
]
