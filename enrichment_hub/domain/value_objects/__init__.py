"""Domain value objects."""

from enrichment_hub.domain.value_objects.chunking_config import ChunkingConfig
from enrichment_hub.domain.value_objects.video_url import VideoUrl

__all__ = [
    "ChunkingConfig",
    "VideoUrl",
]
