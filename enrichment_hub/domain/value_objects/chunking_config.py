"""Chunking configuration value object."""

from pydantic import BaseModel, Field


class ChunkingConfig(BaseModel):
    """Configuration for transcript chunk generation.

    The window size is bounded by the embedding model's input ceiling;
    around 500 words keeps enough context per passage while staying precise
    at retrieval time.
    """

    chunk_size_words: int = Field(
        default=500,
        ge=1,
        le=5000,
        description="Maximum number of words per chunk",
    )
