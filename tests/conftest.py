"""Shared fixtures: in-memory stores, a deterministic embedder and a fake worker."""

import asyncio
import copy
import math
import zlib
from typing import Any, Literal

import pytest

from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DuplicateDocumentError,
)
from enrichment_hub.commons.infrastructure.health import HealthStatus
from enrichment_hub.commons.infrastructure.vectordb.base import (
    PayloadFieldType,
    SearchResult,
    VectorDBBase,
    VectorPoint,
)
from enrichment_hub.commons.settings.models import (
    BackgroundSettings,
    Settings,
    WorkerSettings,
)
from enrichment_hub.domain.exceptions import EmbeddingException
from enrichment_hub.infrastructure.embeddings.base import (
    EmbeddingResult,
    EmbeddingServiceBase,
)
from enrichment_hub.infrastructure.metadata.base import (
    MetadataProviderBase,
    VideoMetadata,
)
from enrichment_hub.infrastructure.worker.base import (
    DispatchRequest,
    EnrichmentWorkerBase,
    WorkerAcknowledgement,
)

_MISSING = object()


def _get_path(document: dict[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _set_path(document: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = document
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = copy.deepcopy(value)


def _match_condition(actual: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(
        k.startswith("$") for k in condition
    ):
        for op, expected in condition.items():
            if (actual is _MISSING or actual is None) and op != "$in":
                return False
            if op == "$in" and actual not in expected:
                return False
            if op == "$gte" and not actual >= expected:
                return False
            if op == "$gt" and not actual > expected:
                return False
            if op == "$lte" and not actual <= expected:
                return False
            if op == "$lt" and not actual < expected:
                return False
        return True
    if condition is None:
        return actual is _MISSING or actual is None
    return actual == condition


def matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    """Subset of MongoDB query semantics used by the application."""
    for key, condition in filters.items():
        if key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif not _match_condition(_get_path(document, key), condition):
            return False
    return True


class InMemoryDocumentDB(DocumentDBBase):
    """Document store backed by dicts, with unique indexes."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.unique_indexes: dict[str, list[list[str]]] = {}
        self.fail_with: Exception | None = None

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        if self.fail_with is not None:
            raise self.fail_with
        return self.collections.setdefault(name, {})

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        docs = self._collection(collection)
        doc_id = str(document["id"])
        if doc_id in docs:
            raise DuplicateDocumentError(collection, f"duplicate id {doc_id}")
        for fields in self.unique_indexes.get(collection, []):
            key = [document.get(f) for f in fields]
            if any([d.get(f) for f in fields] == key for d in docs.values()):
                raise DuplicateDocumentError(collection, f"duplicate key {key}")
        docs[doc_id] = copy.deepcopy(document)
        return doc_id

    async def find_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None:
        doc = self._collection(collection).get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_one(
        self, collection: str, filters: dict[str, Any]
    ) -> dict[str, Any] | None:
        for doc in self._collection(collection).values():
            if matches(doc, filters):
                return copy.deepcopy(doc)
        return None

    async def update(
        self, collection: str, document_id: str, updates: dict[str, Any]
    ) -> bool:
        doc = self._collection(collection).get(document_id)
        if doc is None:
            return False
        for path, value in updates.items():
            _set_path(doc, path, value)
        return True

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> dict[str, Any] | None:
        for doc in self._collection(collection).values():
            if matches(doc, filters):
                for path, value in updates.items():
                    _set_path(doc, path, value)
                for path, amount in (increments or {}).items():
                    current = _get_path(doc, path)
                    _set_path(doc, path, (0 if current is _MISSING else current) + amount)
                return copy.deepcopy(doc)
        return None

    async def add_to_set(
        self, collection: str, document_id: str, field: str, value: Any
    ) -> bool:
        docs = self._collection(collection)
        doc = docs.setdefault(document_id, {"id": document_id})
        values = doc.setdefault(field, [])
        if value in values:
            return False
        values.append(value)
        return True

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        self._collection(collection)
        if unique:
            names = [f for f, _ in fields]
            indexes = self.unique_indexes.setdefault(collection, [])
            if names not in indexes:
                indexes.append(names)
        return name or "_".join(f for f, _ in fields)

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1)


def _cosine(a: list[float], b: list[float]) -> float:
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return sum(x * y for x, y in zip(a, b, strict=True)) / norm


class InMemoryVectorDB(VectorDBBase):
    """Vector store with cosine similarity and payload filters."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, VectorPoint]] = {}
        self.payload_indexes: dict[str, dict[str, PayloadFieldType]] = {}
        self.fail_with: Exception | None = None
        self.search_calls: list[dict[str, Any]] = []

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def ensure_collection(
        self,
        name: str,
        vector_size: int,
        distance_metric: Literal["cosine", "euclidean", "dot"] = "cosine",
        payload_indexes: dict[str, PayloadFieldType] | None = None,
    ) -> bool:
        self._check()
        if name in self.collections:
            return False
        self.collections[name] = {}
        self.payload_indexes[name] = dict(payload_indexes or {})
        return True

    async def collection_exists(self, name: str) -> bool:
        self._check()
        return name in self.collections

    async def upsert(self, collection: str, points: list[VectorPoint]) -> int:
        self._check()
        store = self.collections.setdefault(collection, {})
        for point in points:
            store[point.id] = copy.deepcopy(point)
        return len(points)

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        self._check()
        self.search_calls.append(
            {"limit": limit, "filters": filters, "score_threshold": score_threshold}
        )
        results = [
            SearchResult(id=p.id, score=_cosine(query_vector, p.vector), payload=p.payload)
            for p in self.collections.get(collection, {}).values()
            if matches(p.payload, filters or {})
        ]
        if score_threshold is not None:
            results = [r for r in results if r.score >= score_threshold]
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    async def delete_by_filter(self, collection: str, filters: dict[str, Any]) -> int:
        self._check()
        store = self.collections.get(collection, {})
        doomed = [pid for pid, p in store.items() if matches(p.payload, filters)]
        for pid in doomed:
            del store[pid]
        return len(doomed)

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        self._check()
        return sum(
            1
            for p in self.collections.get(collection, {}).values()
            if matches(p.payload, filters or {})
        )

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1)

    def points(self, collection: str) -> list[VectorPoint]:
        return list(self.collections.get(collection, {}).values())


class HashingEmbedder(EmbeddingServiceBase):
    """Bag-of-words embedder: identical texts embed identically."""

    def __init__(self, dimensions: int = 256) -> None:
        self._dimensions = dimensions
        self.fail_with: Exception | None = None
        self.drop_last = False
        self.batches: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        for word in text.lower().split():
            vector[zlib.crc32(word.encode()) % self._dimensions] += 1.0
        return vector

    async def embed_text(self, text: str) -> EmbeddingResult:
        return (await self.embed_texts([text]))[0]

    async def embed_texts(self, texts: list[str]) -> list[EmbeddingResult]:
        if self.fail_with is not None:
            raise self.fail_with
        self.batches.append(list(texts))
        results = [
            EmbeddingResult(
                vector=self._vector(t), dimensions=self._dimensions, model="hashing"
            )
            for t in texts
        ]
        return results[:-1] if self.drop_last else results

    @property
    def dimensions(self) -> int:
        return self._dimensions


class ScriptedWorker(EnrichmentWorkerBase):
    """Worker whose answers are scripted per call.

    Each entry in ``script`` is either an exception to raise or None for an
    acknowledgement. Once the script is exhausted every call is acknowledged.
    """

    def __init__(self, script: list[Exception | None] | None = None) -> None:
        self.script = list(script or [])
        self.requests: list[DispatchRequest] = []
        self.gate: Any = None

    async def notify(self, request: DispatchRequest) -> WorkerAcknowledgement:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.script:
            outcome = self.script.pop(0)
            if outcome is not None:
                raise outcome
        return WorkerAcknowledgement(status_code=202, body={"accepted": True})


class StaticMetadataProvider(MetadataProviderBase):
    """Metadata provider returning a fixed answer or raising."""

    def __init__(
        self,
        metadata: VideoMetadata | None = None,
        error: Exception | None = None,
    ) -> None:
        self.metadata = metadata or VideoMetadata(
            title="Intro to Graphs",
            thumbnail_url="https://img.example.com/graphs.jpg",
            duration_seconds=600,
        )
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, url: str) -> VideoMetadata:
        self.calls.append(url)
        # Yield so concurrent resolves interleave like real network calls
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.metadata


@pytest.fixture
def settings() -> Settings:
    """Settings with a worker configured and instant retries."""
    return Settings(
        worker=WorkerSettings(base_url="http://worker.test"),
        background=BackgroundSettings(
            retry_attempts=3,
            retry_min_seconds=0,
            retry_max_seconds=0,
            shutdown_timeout_seconds=1,
        ),
    )


@pytest.fixture
def document_db() -> InMemoryDocumentDB:
    return InMemoryDocumentDB()


@pytest.fixture
def vector_db() -> InMemoryVectorDB:
    return InMemoryVectorDB()


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def worker() -> ScriptedWorker:
    return ScriptedWorker()


@pytest.fixture
def metadata_provider() -> StaticMetadataProvider:
    return StaticMetadataProvider()


@pytest.fixture
def embedding_failure() -> EmbeddingException:
    return EmbeddingException("provider unavailable")
