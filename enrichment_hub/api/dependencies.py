"""FastAPI dependency injection for services and settings."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from enrichment_hub.application.services.background import BackgroundTaskRunner
from enrichment_hub.application.services.callbacks import EnrichmentCallbackHandler
from enrichment_hub.application.services.dispatcher import EnrichmentDispatcher
from enrichment_hub.application.services.indexer import TranscriptIndexer
from enrichment_hub.application.services.ingestion import VideoIngestionService
from enrichment_hub.application.services.registry import VideoRegistry
from enrichment_hub.application.services.retriever import SemanticRetriever
from enrichment_hub.commons.settings.loader import get_settings as _load_settings
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


@dataclass
class Services:
    """Application services shared by every request.

    Built once at startup; the background runner and the indexer's
    collection cache must outlive individual requests.
    """

    runner: BackgroundTaskRunner
    registry: VideoRegistry
    dispatcher: EnrichmentDispatcher | None
    ingestion: VideoIngestionService
    indexer: TranscriptIndexer
    callbacks: EnrichmentCallbackHandler
    retriever: SemanticRetriever


def build_services(factory: InfrastructureFactory, settings: Settings) -> Services:
    """Wire application services from infrastructure providers."""
    document_db = factory.get_document_db()
    vector_db = factory.get_vector_db()
    embedder = factory.get_text_embedding_service()

    runner = BackgroundTaskRunner(
        settings.background,
        document_db=document_db,
        dead_letter_collection=settings.document_db.collections.dead_letters,
    )
    registry = VideoRegistry(
        document_db, settings, metadata_provider=factory.get_metadata_provider()
    )

    dispatcher: EnrichmentDispatcher | None = None
    if factory.worker_configured:
        dispatcher = EnrichmentDispatcher(
            document_db, factory.get_enrichment_worker(), settings
        )
    else:
        logger.warning("worker.base_url is not set, videos will not be dispatched")

    indexer = TranscriptIndexer(embedder, vector_db, settings)
    return Services(
        runner=runner,
        registry=registry,
        dispatcher=dispatcher,
        ingestion=VideoIngestionService(
            registry, dispatcher, runner, document_db, settings
        ),
        indexer=indexer,
        callbacks=EnrichmentCallbackHandler(
            document_db, settings, indexer=indexer, runner=runner
        ),
        retriever=SemanticRetriever(embedder, vector_db, settings),
    )


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    return get_factory(settings)


def get_services(request: Request) -> Services:
    """Services built by the application lifespan."""
    services: Services = request.app.state.services
    return services


def get_ingestion_service(
    services: Annotated[Services, Depends(get_services)],
) -> VideoIngestionService:
    return services.ingestion


def get_callback_handler(
    services: Annotated[Services, Depends(get_services)],
) -> EnrichmentCallbackHandler:
    return services.callbacks


def get_retriever(
    services: Annotated[Services, Depends(get_services)],
) -> SemanticRetriever:
    return services.retriever


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
IngestionServiceDep = Annotated[VideoIngestionService, Depends(get_ingestion_service)]
CallbackHandlerDep = Annotated[EnrichmentCallbackHandler, Depends(get_callback_handler)]
RetrieverDep = Annotated[SemanticRetriever, Depends(get_retriever)]


async def init_services(settings: Settings) -> Services:
    """Build infrastructure and services on startup.

    Fails fast when the document store cannot create its indexes, since
    deduplication of videos depends on them.
    """
    factory = get_factory(settings)
    services = build_services(factory, settings)
    await services.registry.ensure_indexes()
    return services


async def shutdown_services(services: Services | None) -> None:
    """Drain background work, then close infrastructure clients."""
    if services is not None:
        await services.runner.drain()
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
