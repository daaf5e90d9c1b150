"""Domain layer - business models and logic."""

from enrichment_hub.domain.exceptions import (
    DomainException,
    DurationExceededException,
    EmbeddingException,
    EmptyTranscriptException,
    ExternalServiceException,
    InvalidCallbackPayloadException,
    InvalidVideoUrlException,
    MetadataUnavailableException,
    StorageException,
    ValidationException,
    VectorStoreException,
    VideoNotFoundException,
    WorkerDispatchException,
)
from enrichment_hub.domain.models import (
    DispatchState,
    KeyConcepts,
    QuizItems,
    RetrievalMatch,
    Summary,
    TranscriptChunk,
    TranscriptEntry,
    TranscriptTracks,
    Video,
)
from enrichment_hub.domain.value_objects import ChunkingConfig, VideoUrl

__all__ = [
    # Exceptions
    "DomainException",
    "ValidationException",
    "InvalidVideoUrlException",
    "InvalidCallbackPayloadException",
    "VideoNotFoundException",
    "DurationExceededException",
    "StorageException",
    "ExternalServiceException",
    "MetadataUnavailableException",
    "WorkerDispatchException",
    "EmbeddingException",
    "VectorStoreException",
    "EmptyTranscriptException",
    # Video
    "Video",
    "DispatchState",
    "TranscriptEntry",
    "TranscriptTracks",
    "Summary",
    "KeyConcepts",
    "QuizItems",
    # Chunks
    "TranscriptChunk",
    "RetrievalMatch",
    # Value Objects
    "ChunkingConfig",
    "VideoUrl",
]
