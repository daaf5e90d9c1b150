"""Abstract base class for embedding services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class EmbeddingResult:
    """Result from embedding generation."""

    vector: list[float]
    dimensions: int
    model: str
    tokens_used: int | None = None


class EmbeddingServiceBase(ABC):
    """Abstract base class for text embedding services.

    Implementations must return exactly one result per input, in input
    order, or raise EmbeddingException. Partial results are never returned.
    """

    @abstractmethod
    async def embed_text(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Raises:
            EmbeddingException: If the provider fails or times out.
        """

    @abstractmethod
    async def embed_texts(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts (batched).

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding results in same order as input.

        Raises:
            EmbeddingException: If the provider fails, times out or returns
                a different number of vectors than requested.
        """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Dimensions of embedding vectors."""
