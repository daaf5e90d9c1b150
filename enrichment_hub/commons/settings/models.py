"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "video-enrichment-hub"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class CollectionSettings(BaseModel):
    """Vector DB collection names."""

    transcripts: str = "transcript_embeddings"


class VectorDBSettings(BaseModel):
    """Vector database settings (Qdrant)."""

    provider: Literal["qdrant"] = "qdrant"
    host: str = "localhost"
    port: int = 6333
    grpc_port: int = 6334
    url: str | None = None
    api_key: str | None = None
    use_ssl: bool = False
    prefer_grpc: bool = True
    timeout_seconds: int = Field(default=10, ge=1)
    collections: CollectionSettings = Field(default_factory=CollectionSettings)
    default_scope: str = "transcripts"
    distance_metric: Literal["cosine", "euclidean", "dot"] = "cosine"


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"
    watch_history: str = "watch_history"
    dead_letters: str = "dead_letters"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "enrichment_hub"
    auth_source: str = "admin"
    timeout_ms: int = Field(default=5000, ge=100)
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class TextEmbeddingSettings(BaseModel):
    """Text embedding settings."""

    provider: Literal["openai", "azure_openai"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    batch_size: int = 100
    timeout_seconds: float = Field(default=30.0, gt=0)


class EmbeddingsSettings(BaseModel):
    """Combined embedding settings."""

    text: TextEmbeddingSettings = Field(default_factory=TextEmbeddingSettings)


class MetadataSettings(BaseModel):
    """Video metadata provider settings (yt-dlp)."""

    enabled: bool = True
    timeout_seconds: float = Field(default=15.0, gt=0)
    cookies_file: str | None = None
    proxy: str | None = None


class WorkerSettings(BaseModel):
    """Remote enrichment worker settings."""

    base_url: str | None = None
    dispatch_path: str = "/process"
    api_key: str | None = None
    callback_base_url: str = "http://localhost:8000"
    timeout_seconds: float = Field(default=10.0, gt=0)
    lease_seconds: int = Field(
        default=120,
        ge=1,
        description="How long a claimed dispatch blocks other attempts",
    )
    alert_after_attempts: int = Field(
        default=5,
        ge=1,
        description="Log at error level once a video failed this many times",
    )

    @model_validator(mode="after")
    def _lease_outlives_request(self) -> "WorkerSettings":
        if self.lease_seconds <= self.timeout_seconds:
            raise ValueError(
                f"lease_seconds ({self.lease_seconds}) must exceed "
                f"timeout_seconds ({self.timeout_seconds})"
            )
        return self


class IngestionSettings(BaseModel):
    """Ingestion policy settings."""

    max_duration_seconds: int | None = Field(
        default=1200,
        ge=1,
        description="Reject videos longer than this; None disables the check",
    )
    dispatch_on_ingest: bool = True


class IndexingSettings(BaseModel):
    """Transcript indexing settings."""

    enabled: bool = True
    chunk_size_words: int = Field(default=500, ge=1, le=5000)


class RetrievalSettings(BaseModel):
    """Semantic retrieval defaults."""

    default_top_k: int = Field(default=2, ge=1, le=100)
    default_threshold: float = Field(default=0.6, ge=-1.0, le=1.0)


class BackgroundSettings(BaseModel):
    """Background task runner settings."""

    max_concurrency: int = Field(default=4, ge=1, le=64)
    retry_attempts: int = Field(default=3, ge=1, le=20)
    retry_min_seconds: float = Field(default=1.0, ge=0)
    retry_max_seconds: float = Field(default=30.0, ge=0)
    shutdown_timeout_seconds: float = Field(default=10.0, ge=0)


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    vector_db: VectorDBSettings = Field(default_factory=VectorDBSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    embeddings: EmbeddingsSettings = Field(default_factory=EmbeddingsSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    background: BackgroundSettings = Field(default_factory=BackgroundSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ENRICHMENT_HUB__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
