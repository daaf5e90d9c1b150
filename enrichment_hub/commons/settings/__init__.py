"""Settings management module."""

from enrichment_hub.commons.settings.loader import (
    SettingsLoader,
    get_settings,
    reset_settings,
)
from enrichment_hub.commons.settings.models import (
    AppSettings,
    BackgroundSettings,
    CollectionSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    EmbeddingsSettings,
    IndexingSettings,
    IngestionSettings,
    MetadataSettings,
    RetrievalSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    TextEmbeddingSettings,
    VectorDBSettings,
    WorkerSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "VectorDBSettings",
    "CollectionSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # External services
    "EmbeddingsSettings",
    "TextEmbeddingSettings",
    "MetadataSettings",
    "WorkerSettings",
    # Pipeline
    "IngestionSettings",
    "IndexingSettings",
    "RetrievalSettings",
    "BackgroundSettings",
    # Telemetry
    "TelemetrySettings",
]
