"""Unit tests for API routes."""

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from enrichment_hub.api.dependencies import (
    build_services,
    get_infrastructure_factory,
    get_services,
    get_settings,
)
from enrichment_hub.api.main import create_app
from enrichment_hub.commons.infrastructure.health import HealthStatus
from enrichment_hub.domain.exceptions import WorkerDispatchException
from enrichment_hub.infrastructure.metadata.base import VideoMetadata

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class FakeFactory:
    """Stands in for InfrastructureFactory with in-memory providers."""

    def __init__(self, settings, document_db, vector_db, embedder, metadata, worker):
        self.settings = settings
        self._document_db = document_db
        self._vector_db = vector_db
        self._embedder = embedder
        self._metadata = metadata
        self._worker = worker

    @property
    def worker_configured(self) -> bool:
        return self._worker is not None

    def get_document_db(self):
        return self._document_db

    def get_vector_db(self):
        return self._vector_db

    def get_text_embedding_service(self):
        return self._embedder

    def get_metadata_provider(self):
        return self._metadata

    def get_enrichment_worker(self):
        return self._worker


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def factory(settings, document_db, vector_db, embedder, metadata_provider, worker):
    return FakeFactory(
        settings, document_db, vector_db, embedder, metadata_provider, worker
    )


@pytest.fixture
async def services(factory, settings):
    services = build_services(factory, settings)
    await services.registry.ensure_indexes()
    yield services
    await services.runner.drain()


@pytest.fixture
def app(settings, factory, services):
    app = create_app(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_infrastructure_factory] = lambda: factory
    app.dependency_overrides[get_services] = lambda: services
    return app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _register(client) -> dict:
    response = await client.post("/v1/videos", json={"source_url": URL})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["video"]


# =============================================================================
# Videos
# =============================================================================


class TestRegisterVideo:
    async def test_created_then_existing(self, client, services, worker):
        first = await client.post("/v1/videos", json={"source_url": URL})
        await services.runner.join()
        second = await client.post("/v1/videos", json={"source_url": URL})

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert first.json()["video"]["id"] == second.json()["video"]["id"]
        assert second.json()["message"] == "Video already registered and processed"
        assert len(worker.requests) == 1

    async def test_response_fields(self, client):
        response = await client.post(
            "/v1/videos", json={"source_url": URL, "user_id": "u1"}
        )

        data = response.json()
        assert data["created"] is True
        assert data["already_in_history"] is False
        assert data["dispatch_scheduled"] is True
        assert data["video"]["title"] == "Intro to Graphs"
        assert data["video"]["duration_label"] == "10:00"
        assert data["video"]["dispatch_acknowledged"] is False

    async def test_invalid_url(self, client):
        response = await client.post("/v1/videos", json={"source_url": "ftp://x/y"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "INVALID_VIDEO_URL"
        assert error["details"]["url"] == "ftp://x/y"

    @pytest.mark.parametrize("source_url", ["", "   "])
    async def test_blank_url(self, client, source_url):
        response = await client.post("/v1/videos", json={"source_url": source_url})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "INVALID_VIDEO_URL"

    async def test_too_long(self, client, metadata_provider):
        metadata_provider.metadata = VideoMetadata(
            title="Long", thumbnail_url="", duration_seconds=1500
        )

        response = await client.post("/v1/videos", json={"source_url": URL})

        assert response.status_code == status.HTTP_409_CONFLICT
        error = response.json()["error"]
        assert error["code"] == "DURATION_EXCEEDED"
        assert error["details"]["limit_seconds"] == 1200

    async def test_missing_body_field(self, client):
        response = await client.post("/v1/videos", json={})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"][0]["loc"][-1] == "source_url"


class TestGetVideo:
    async def test_found(self, client):
        video = await _register(client)

        response = await client.get(f"/v1/videos/{video['id']}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["source_url"] == URL
        assert data["summary"] == {"normalized": "NA", "original": "NA"}
        assert data["transcript"] == {"original": [], "normalized": []}

    async def test_not_found_envelope(self, client):
        response = await client.get(
            "/v1/videos/missing", headers={"X-Request-ID": "req-123"}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json() == {
            "error": {
                "code": "VIDEO_NOT_FOUND",
                "message": "Video not found: missing",
                "details": {"video_id": "missing"},
                "request_id": "req-123",
            }
        }

    async def test_request_id_generated(self, client):
        response = await client.get("/health/live")
        assert response.headers["X-Request-ID"]


class TestDispatchVideo:
    async def test_manual_dispatch(self, client, services, worker):
        video, _ = await services.registry.resolve(URL)

        response = await client.post(f"/v1/videos/{video.id}/dispatch")
        again = await client.post(f"/v1/videos/{video.id}/dispatch")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "acknowledged"
        assert response.json()["attempts"] == 1
        assert again.json()["status"] == "already_acknowledged"
        assert len(worker.requests) == 1

    async def test_without_worker(self, settings, factory):
        factory._worker = None
        services = build_services(factory, settings)
        video, _ = await services.registry.resolve(URL)
        app = create_app(settings)
        app.dependency_overrides[get_services] = lambda: services

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(f"/v1/videos/{video.id}/dispatch")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["error"]["details"]["service"] == "enrichment_worker"

    async def test_worker_failure_reported(self, client, worker, services):
        video, _ = await services.registry.resolve(URL)
        worker.script = [WorkerDispatchException(video.id, "HTTP 503")]

        response = await client.post(f"/v1/videos/{video.id}/dispatch")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "failed"
        assert response.json()["reason"] == "HTTP 503"

    async def test_unknown_video(self, client):
        response = await client.post("/v1/videos/missing/dispatch")
        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Callbacks and retrieval
# =============================================================================


class TestCallbacks:
    async def test_transcript_then_query(self, client, services):
        video = await _register(client)
        await services.runner.join()

        response = await client.post(
            f"/v1/videos/{video['id']}/transcript",
            json={
                "version": 1,
                "english": [
                    {"timestamp": [0, 4], "text": "Graphs connect nodes with edges"}
                ],
            },
        )
        await services.runner.join()

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["indexing_scheduled"] is True

        query = await client.post("/v1/query", json={"query": "nodes and edges"})
        assert query.status_code == status.HTTP_200_OK
        data = query.json()
        assert data["scope"] == "transcripts"
        assert data["matches"][0]["source_id"] == video["id"]
        assert data["matches"][0]["chunk_id"] == f"{video['id']}_chunk_0"

    @pytest.mark.parametrize(
        ("path", "body"),
        [
            ("summary", {"Summary_eng": "About graphs"}),
            ("keyconcepts", {"concept": "Graphs"}),
            ("qnas", {"Questions": '[{"question": "Q?"}]'}),
            ("description", {"description": "Lecture"}),
        ],
    )
    async def test_artifacts(self, client, path, body):
        video = await _register(client)

        response = await client.post(f"/v1/videos/{video['id']}/{path}", json=body)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["artifact"] == path

    async def test_unknown_field_rejected(self, client):
        video = await _register(client)

        response = await client.post(
            f"/v1/videos/{video['id']}/summary", json={"normalized": "x", "extra": 1}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_id_mismatch(self, client):
        video = await _register(client)

        response = await client.post(
            f"/v1/videos/{video['id']}/description",
            json={"id": "other", "description": "x"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"]["code"] == "INVALID_CALLBACK_PAYLOAD"

    async def test_unknown_video(self, client):
        response = await client.post(
            "/v1/videos/missing/description", json={"description": "x"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestQuery:
    async def test_nothing_indexed(self, client):
        response = await client.post("/v1/query", json={"query": "graphs"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["matches"] == []

    async def test_video_filter(self, client, services, vector_db):
        await services.indexer.index("v1", "graphs nodes")
        await services.indexer.index("v2", "graphs nodes")

        response = await client.post(
            "/v1/query", json={"query": "graphs nodes", "video_id": "v2", "top_k": 5}
        )

        assert [m["source_id"] for m in response.json()["matches"]] == ["v2"]

    async def test_embedding_failure(self, client, services, embedder, embedding_failure):
        await services.indexer.index("v1", "graphs nodes")
        embedder.fail_with = embedding_failure

        response = await client.post("/v1/query", json={"query": "graphs"})

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"

    async def test_default_scope_comes_from_retriever(self, app, client, services, settings):
        await services.indexer.index("v1", "graphs nodes")
        other = settings.model_copy(deep=True)
        other.vector_db.default_scope = "elsewhere"
        app.dependency_overrides[get_settings] = lambda: other

        response = await client.post("/v1/query", json={"query": "graphs nodes"})

        data = response.json()
        assert data["scope"] == "transcripts"
        assert [m["source_id"] for m in data["matches"]] == ["v1"]

    async def test_invalid_top_k(self, client):
        response = await client.post("/v1/query", json={"query": "x", "top_k": 0})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# Health
# =============================================================================


class TestHealth:
    async def test_healthy(self, client):
        response = await client.get("/health")

        data = response.json()
        assert data["status"] == "healthy"
        names = {c["name"]: c["status"] for c in data["components"]}
        assert names == {
            "document_db": "healthy",
            "vector_db": "healthy",
            "enrichment_worker": "healthy",
        }

    async def test_degraded_when_one_store_down(self, client, vector_db, monkeypatch):
        async def down():
            return HealthStatus(healthy=False, latency_ms=1.0, message="refused")

        monkeypatch.setattr(vector_db, "health_check", down)

        response = await client.get("/health")

        assert response.json()["status"] == "degraded"

    async def test_probe_exception_counts_as_unhealthy(
        self, client, document_db, vector_db, monkeypatch
    ):
        async def boom():
            raise ConnectionError("unreachable")

        monkeypatch.setattr(document_db, "health_check", boom)
        monkeypatch.setattr(vector_db, "health_check", boom)

        response = await client.get("/health")

        assert response.json()["status"] == "unhealthy"

    async def test_live(self, client):
        response = await client.get("/health/live")
        assert response.json() == {"status": "ok"}

    async def test_ready(self, client, vector_db, monkeypatch):
        ready = await client.get("/health/ready")
        assert ready.json() == {
            "ready": True,
            "checks": {"document_db": True, "vector_db": True},
        }

        async def down():
            return HealthStatus(healthy=False, latency_ms=1.0)

        monkeypatch.setattr(vector_db, "health_check", down)
        not_ready = await client.get("/health/ready")
        assert not_ready.json()["ready"] is False

    async def test_worker_not_configured(self, settings, services, factory):
        factory._worker = None
        app = create_app(settings)
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_infrastructure_factory] = lambda: factory
        app.dependency_overrides[get_services] = lambda: services

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

        components = {c["name"]: c for c in response.json()["components"]}
        assert components["enrichment_worker"]["status"] == "degraded"
