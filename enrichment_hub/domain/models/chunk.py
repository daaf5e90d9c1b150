"""Transcript chunk and retrieval match models."""

from uuid import NAMESPACE_URL, uuid5

from pydantic import BaseModel, Field


def make_chunk_id(video_id: str, index: int) -> str:
    """Build the deterministic chunk id for a video and chunk position."""
    return f"{video_id}_chunk_{index}"


class TranscriptChunk(BaseModel):
    """A bounded slice of cleaned transcript text.

    Chunks are never stored on their own; they only exist as points in the
    vector index. Ids are derived from the video id and position so that
    re-indexing the same transcript overwrites instead of appending.
    """

    video_id: str = Field(description="Reference to the parent Video")
    index: int = Field(ge=0, description="Position of the chunk in the transcript")
    scope: str = Field(description="Vector index scope the chunk lives in")
    text: str = Field(min_length=1, description="Cleaned chunk text")

    @property
    def id(self) -> str:
        """Readable chunk id, ``<video_id>_chunk_<n>``."""
        return make_chunk_id(self.video_id, self.index)

    @property
    def point_id(self) -> str:
        """Vector point id.

        Qdrant only accepts UUIDs or unsigned integers, so the readable id is
        mapped onto a stable UUIDv5 and kept in the payload.
        """
        return str(uuid5(NAMESPACE_URL, f"{self.scope}/{self.id}"))

    @property
    def word_count(self) -> int:
        """Number of words in the chunk."""
        return len(self.text.split())

    def to_payload(self) -> dict[str, str | int]:
        """Payload stored alongside the vector."""
        return {
            "video_id": self.video_id,
            "chunk_id": self.id,
            "chunk_index": self.index,
            "scope": self.scope,
            "text": self.text,
        }


class RetrievalMatch(BaseModel):
    """A transcript passage returned by semantic retrieval."""

    source_id: str = Field(description="Video id the passage belongs to")
    chunk_id: str = Field(description="Readable chunk id")
    chunk_text: str = Field(description="Text of the matched chunk")
    score: float = Field(description="Similarity score")
