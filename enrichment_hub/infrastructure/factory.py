"""Infrastructure factory for creating service instances from configuration."""

import inspect
from pathlib import Path
from typing import Any, cast

from enrichment_hub.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from enrichment_hub.commons.infrastructure.vectordb import QdrantVectorDB, VectorDBBase
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.infrastructure.embeddings import (
    EmbeddingServiceBase,
    OpenAIEmbeddingService,
)
from enrichment_hub.infrastructure.metadata import (
    MetadataProviderBase,
    YtDlpMetadataProvider,
)
from enrichment_hub.infrastructure.worker import (
    EnrichmentWorkerBase,
    HttpEnrichmentWorker,
)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches them, so every caller shares one client per backend.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def worker_configured(self) -> bool:
        """Whether a worker endpoint is configured."""
        return bool(self._settings.worker.base_url)

    def get_vector_db(self) -> VectorDBBase:
        """Get vector database instance."""
        if "vector_db" not in self._instances:
            vector_settings = self._settings.vector_db
            self._instances["vector_db"] = QdrantVectorDB(
                host=vector_settings.host,
                port=vector_settings.port,
                grpc_port=vector_settings.grpc_port,
                api_key=vector_settings.api_key,
                url=vector_settings.url,
                prefer_grpc=vector_settings.prefer_grpc,
                https=vector_settings.use_ssl,
                timeout_seconds=vector_settings.timeout_seconds,
            )
        return cast("VectorDBBase", self._instances["vector_db"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance."""
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
                timeout_ms=doc_settings.timeout_ms,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_text_embedding_service(self) -> EmbeddingServiceBase:
        """Get text embedding service instance."""
        if "text_embedding" not in self._instances:
            embed_settings = self._settings.embeddings.text
            self._instances["text_embedding"] = OpenAIEmbeddingService(
                api_key=embed_settings.api_key,
                model=embed_settings.model,
                base_url=embed_settings.endpoint,
                timeout_seconds=embed_settings.timeout_seconds,
                batch_size=embed_settings.batch_size,
                dimensions=embed_settings.dimensions,
            )
        return cast("EmbeddingServiceBase", self._instances["text_embedding"])

    def get_metadata_provider(self) -> MetadataProviderBase:
        """Get video metadata provider instance."""
        if "metadata" not in self._instances:
            meta_settings = self._settings.metadata
            cookies_file = (
                Path(meta_settings.cookies_file) if meta_settings.cookies_file else None
            )
            self._instances["metadata"] = YtDlpMetadataProvider(
                timeout_seconds=meta_settings.timeout_seconds,
                cookies_file=cookies_file,
                proxy=meta_settings.proxy,
            )
        return cast("MetadataProviderBase", self._instances["metadata"])

    def get_enrichment_worker(self) -> EnrichmentWorkerBase:
        """Get enrichment worker client.

        Raises:
            ValueError: If no worker endpoint is configured.
        """
        if "worker" not in self._instances:
            worker_settings = self._settings.worker
            if not worker_settings.base_url:
                raise ValueError("worker.base_url is not configured")
            self._instances["worker"] = HttpEnrichmentWorker(
                base_url=worker_settings.base_url,
                dispatch_path=worker_settings.dispatch_path,
                api_key=worker_settings.api_key,
                timeout_seconds=worker_settings.timeout_seconds,
            )
        return cast("EnrichmentWorkerBase", self._instances["worker"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                self._logger.warning(
                    "Failed to close client", exc_info=True, extra={"client": name}
                )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
