"""Remote enrichment worker clients."""

from enrichment_hub.infrastructure.worker.base import (
    DISPATCH_CONTRACT_VERSION,
    DispatchRequest,
    EnrichmentWorkerBase,
    WorkerAcknowledgement,
)
from enrichment_hub.infrastructure.worker.http_worker import HttpEnrichmentWorker

__all__ = [
    "DISPATCH_CONTRACT_VERSION",
    "DispatchRequest",
    "EnrichmentWorkerBase",
    "WorkerAcknowledgement",
    "HttpEnrichmentWorker",
]
