"""Abstract base class for video metadata providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class VideoMetadata:
    """Descriptive metadata of an externally hosted video."""

    title: str
    thumbnail_url: str
    duration_seconds: int


class MetadataProviderBase(ABC):
    """Looks up title, thumbnail and duration for a video URL.

    Providers are unreliable by nature; every call must be bounded by a
    timeout and failures surface as MetadataUnavailableException.
    """

    @abstractmethod
    async def fetch(self, url: str) -> VideoMetadata:
        """Fetch metadata without downloading the video.

        Args:
            url: Video source URL.

        Returns:
            Video metadata.

        Raises:
            MetadataUnavailableException: If the lookup fails or times out.
        """
