"""Video metadata providers."""

from enrichment_hub.infrastructure.metadata.base import (
    MetadataProviderBase,
    VideoMetadata,
)
from enrichment_hub.infrastructure.metadata.ytdlp_provider import YtDlpMetadataProvider

__all__ = [
    "MetadataProviderBase",
    "VideoMetadata",
    "YtDlpMetadataProvider",
]
