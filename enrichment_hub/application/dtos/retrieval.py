"""DTOs for semantic retrieval."""

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Free-text query against the transcript index."""

    query: str = Field(max_length=2000, description="Question or search phrase")
    scope: str | None = Field(
        default=None,
        description="Index scope; the configured default when omitted",
    )
    top_k: int | None = Field(default=None, ge=1, le=100)
    threshold: float | None = Field(default=None, ge=-1.0, le=1.0)
    video_id: str | None = Field(
        default=None,
        description="Restrict matches to one video",
    )


class MatchDTO(BaseModel):
    """One relevant transcript passage."""

    source_id: str = Field(description="Video id")
    chunk_id: str
    chunk_text: str
    score: float


class QueryResponse(BaseModel):
    """Ranked matches, best first."""

    query: str
    scope: str
    matches: list[MatchDTO]
