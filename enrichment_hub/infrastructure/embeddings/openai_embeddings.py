"""OpenAI implementation of text embedding service."""

from typing import ClassVar

from openai import AsyncOpenAI, OpenAIError

from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.domain.exceptions import EmbeddingException
from enrichment_hub.infrastructure.embeddings.base import (
    EmbeddingResult,
    EmbeddingServiceBase,
)


class OpenAIEmbeddingService(EmbeddingServiceBase):
    """OpenAI implementation of text embedding service.

    Uses OpenAI's text-embedding models (e.g., text-embedding-3-small/large).
    """

    _MODEL_DIMENSIONS: ClassVar[dict[str, int]] = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        batch_size: int = 100,
        dimensions: int | None = None,
    ) -> None:
        """Initialize OpenAI embedding client.

        Args:
            api_key: OpenAI API key.
            model: Embedding model to use.
            base_url: Optional custom API endpoint (for Azure, etc.).
            timeout_seconds: Timeout for each embeddings request.
            batch_size: Maximum inputs per request.
            dimensions: Vector size; inferred from the model when omitted.
        """
        # Retries belong to the background runner, not the client
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self._model = model
        self._batch_size = min(batch_size, 2048)
        self._dimensions = dimensions or self._MODEL_DIMENSIONS.get(model, 1536)
        self._logger = get_logger(__name__)

    async def embed_text(self, text: str) -> EmbeddingResult:
        results = await self.embed_texts([text])
        return results[0]

    async def embed_texts(self, texts: list[str]) -> list[EmbeddingResult]:
        if not texts:
            return []

        # OpenAI rejects empty strings
        sanitized = [text if text.strip() else " " for text in texts]

        results: list[EmbeddingResult] = []
        for i in range(0, len(sanitized), self._batch_size):
            batch = sanitized[i : i + self._batch_size]

            try:
                response = await self._client.embeddings.create(
                    model=self._model,
                    input=batch,
                )
            except OpenAIError as e:
                raise EmbeddingException(f"{type(e).__name__}: {e}") from e

            if len(response.data) != len(batch):
                raise EmbeddingException(
                    f"expected {len(batch)} vectors, got {len(response.data)}"
                )

            tokens_per_item = None
            if response.usage:
                tokens_per_item = response.usage.total_tokens // len(batch)

            # The API may return items out of order; index is authoritative
            for data in sorted(response.data, key=lambda d: d.index):
                results.append(
                    EmbeddingResult(
                        vector=data.embedding,
                        dimensions=len(data.embedding),
                        model=self._model,
                        tokens_used=tokens_per_item,
                    )
                )

        self._logger.debug(
            "Generated embeddings",
            extra={"count": len(results), "model": self._model},
        )
        return results

    @property
    def dimensions(self) -> int:
        return self._dimensions
