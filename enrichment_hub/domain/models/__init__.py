"""Domain models."""

from enrichment_hub.domain.models.chunk import (
    RetrievalMatch,
    TranscriptChunk,
    make_chunk_id,
)
from enrichment_hub.domain.models.video import (
    ConceptQuestion,
    DispatchState,
    KeyConcepts,
    MultipleChoiceQuestion,
    QuizItems,
    ShortQuestion,
    Summary,
    TranscriptEntry,
    TranscriptTracks,
    Video,
    format_duration,
)

__all__ = [
    # Video
    "Video",
    "DispatchState",
    "TranscriptEntry",
    "TranscriptTracks",
    "Summary",
    "KeyConcepts",
    "ConceptQuestion",
    "QuizItems",
    "ShortQuestion",
    "MultipleChoiceQuestion",
    "format_duration",
    # Chunks
    "TranscriptChunk",
    "RetrievalMatch",
    "make_chunk_id",
]
