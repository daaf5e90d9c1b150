"""Data Transfer Objects for application layer."""

from enrichment_hub.application.dtos.callbacks import (
    CALLBACK_CONTRACT_VERSION,
    CallbackResponse,
    DescriptionCallback,
    KeyConceptsCallback,
    QuizItemsCallback,
    SummaryCallback,
    TranscriptCallback,
)
from enrichment_hub.application.dtos.ingestion import (
    DispatchResponse,
    IngestVideoRequest,
    IngestVideoResponse,
    VideoDetailDTO,
    VideoSummaryDTO,
)
from enrichment_hub.application.dtos.retrieval import (
    MatchDTO,
    QueryRequest,
    QueryResponse,
)

__all__ = [
    # Ingestion DTOs
    "IngestVideoRequest",
    "IngestVideoResponse",
    "VideoSummaryDTO",
    "VideoDetailDTO",
    "DispatchResponse",
    # Callback DTOs
    "CALLBACK_CONTRACT_VERSION",
    "TranscriptCallback",
    "SummaryCallback",
    "KeyConceptsCallback",
    "QuizItemsCallback",
    "DescriptionCallback",
    "CallbackResponse",
    # Retrieval DTOs
    "QueryRequest",
    "QueryResponse",
    "MatchDTO",
]
