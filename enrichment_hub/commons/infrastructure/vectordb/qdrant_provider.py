"""Qdrant implementation of vector database."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Literal

from qdrant_client import AsyncQdrantClient, models

from enrichment_hub.commons.infrastructure.health import HealthStatus
from enrichment_hub.commons.infrastructure.vectordb.base import (
    PayloadFieldType,
    SearchResult,
    VectorDBBase,
    VectorDBError,
    VectorPoint,
)

_DISTANCES = {
    "cosine": models.Distance.COSINE,
    "euclidean": models.Distance.EUCLID,
    "dot": models.Distance.DOT,
}

_PAYLOAD_SCHEMAS = {
    "keyword": models.PayloadSchemaType.KEYWORD,
    "integer": models.PayloadSchemaType.INTEGER,
}

_RANGE_OPERATORS = {"$gte": "gte", "$gt": "gt", "$lte": "lte", "$lt": "lt"}


class QdrantVectorDB(VectorDBBase):
    """Qdrant implementation of vector database.

    Supports both local Qdrant and Qdrant Cloud.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        grpc_port: int = 6334,
        api_key: str | None = None,
        url: str | None = None,
        prefer_grpc: bool = True,
        https: bool = False,
        timeout_seconds: int = 10,
    ) -> None:
        """Initialize Qdrant client.

        Args:
            host: Qdrant server host.
            port: Qdrant HTTP port.
            grpc_port: Qdrant gRPC port.
            api_key: API key for Qdrant Cloud.
            url: Full URL (overrides host/port, for Qdrant Cloud).
            prefer_grpc: Use gRPC for operations (faster).
            https: Use TLS when connecting by host and port.
            timeout_seconds: Per-request timeout.
        """
        if url:
            self._client = AsyncQdrantClient(
                url=url,
                api_key=api_key,
                prefer_grpc=prefer_grpc,
                timeout=timeout_seconds,
            )
            self._endpoint = url
        else:
            self._client = AsyncQdrantClient(
                host=host,
                port=port,
                grpc_port=grpc_port,
                api_key=api_key,
                prefer_grpc=prefer_grpc,
                https=https,
                timeout=timeout_seconds,
            )
            self._endpoint = f"{host}:{port}"

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        # qdrant-client raises transport specific errors (httpx, grpc, its own
        # UnexpectedResponse); callers only see VectorDBError
        try:
            yield
        except VectorDBError:
            raise
        except Exception as e:
            raise VectorDBError(operation, str(e) or type(e).__name__) from e

    async def ensure_collection(
        self,
        name: str,
        vector_size: int,
        distance_metric: Literal["cosine", "euclidean", "dot"] = "cosine",
        payload_indexes: dict[str, PayloadFieldType] | None = None,
    ) -> bool:
        if await self.collection_exists(name):
            return False

        with self._translate_errors(f"create collection {name}"):
            await self._client.create_collection(
                collection_name=name,
                vectors_config=models.VectorParams(
                    size=vector_size,
                    distance=_DISTANCES[distance_metric],
                ),
            )
            for field_name, field_type in (payload_indexes or {}).items():
                await self._client.create_payload_index(
                    collection_name=name,
                    field_name=field_name,
                    field_schema=_PAYLOAD_SCHEMAS[field_type],
                )
        return True

    async def collection_exists(self, name: str) -> bool:
        with self._translate_errors(f"check collection {name}"):
            return bool(await self._client.collection_exists(collection_name=name))

    async def upsert(
        self,
        collection: str,
        points: list[VectorPoint],
    ) -> int:
        if not points:
            return 0

        qdrant_points = [
            models.PointStruct(
                id=point.id,
                vector=point.vector,
                payload=point.payload,
            )
            for point in points
        ]

        with self._translate_errors(f"upsert into {collection}"):
            await self._client.upsert(
                collection_name=collection,
                points=qdrant_points,
                wait=True,
            )
        return len(points)

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        qdrant_filter = self._build_filter(filters) if filters else None

        with self._translate_errors(f"search in {collection}"):
            response = await self._client.query_points(
                collection_name=collection,
                query=query_vector,
                limit=limit,
                query_filter=qdrant_filter,
                score_threshold=score_threshold,
                with_payload=True,
            )

        return [
            SearchResult(
                id=str(result.id),
                score=result.score or 0.0,
                payload=result.payload or {},
            )
            for result in response.points
        ]

    async def delete_by_filter(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        matched = await self.count(collection, filters)
        if matched == 0:
            return 0

        with self._translate_errors(f"delete from {collection}"):
            await self._client.delete(
                collection_name=collection,
                points_selector=models.FilterSelector(
                    filter=self._build_filter(filters)
                ),
                wait=True,
            )
        return matched

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        qdrant_filter = self._build_filter(filters) if filters else None

        with self._translate_errors(f"count in {collection}"):
            result = await self._client.count(
                collection_name=collection,
                count_filter=qdrant_filter,
                exact=True,
            )
        return int(result.count)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._client.get_collections()
        except Exception as e:  # noqa: BLE001
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"Qdrant health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="Qdrant is healthy",
            details={"endpoint": self._endpoint},
        )

    def _build_filter(self, filters: dict[str, Any]) -> models.Filter:
        """Build Qdrant filter from dict."""
        conditions: list[models.Condition] = []

        for field, value in filters.items():
            if not isinstance(value, dict):
                conditions.append(
                    models.FieldCondition(
                        key=field,
                        match=models.MatchValue(value=value),
                    )
                )
                continue

            range_bounds = {
                _RANGE_OPERATORS[op]: op_value
                for op, op_value in value.items()
                if op in _RANGE_OPERATORS
            }
            if range_bounds:
                conditions.append(
                    models.FieldCondition(key=field, range=models.Range(**range_bounds))
                )
            if "$in" in value:
                conditions.append(
                    models.FieldCondition(
                        key=field,
                        match=models.MatchAny(any=value["$in"]),
                    )
                )

        return models.Filter(must=conditions)

    async def close(self) -> None:
        """Close the client connection."""
        await self._client.close()
