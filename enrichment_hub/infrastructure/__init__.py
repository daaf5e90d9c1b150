"""Infrastructure layer - external service implementations."""

from enrichment_hub.infrastructure.embeddings import (
    EmbeddingResult,
    EmbeddingServiceBase,
    OpenAIEmbeddingService,
)
from enrichment_hub.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from enrichment_hub.infrastructure.metadata import (
    MetadataProviderBase,
    VideoMetadata,
    YtDlpMetadataProvider,
)
from enrichment_hub.infrastructure.worker import (
    DispatchRequest,
    EnrichmentWorkerBase,
    HttpEnrichmentWorker,
    WorkerAcknowledgement,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Embeddings
    "EmbeddingServiceBase",
    "EmbeddingResult",
    "OpenAIEmbeddingService",
    # Metadata
    "MetadataProviderBase",
    "VideoMetadata",
    "YtDlpMetadataProvider",
    # Worker
    "EnrichmentWorkerBase",
    "DispatchRequest",
    "WorkerAcknowledgement",
    "HttpEnrichmentWorker",
]
