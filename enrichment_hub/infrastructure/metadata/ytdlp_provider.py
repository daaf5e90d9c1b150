"""yt-dlp implementation of the video metadata provider."""

import asyncio
from pathlib import Path
from typing import Any

import yt_dlp

from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.domain.exceptions import MetadataUnavailableException
from enrichment_hub.infrastructure.metadata.base import (
    MetadataProviderBase,
    VideoMetadata,
)


class YtDlpMetadataProvider(MetadataProviderBase):
    """Reads video metadata through yt-dlp's extractor, without downloading.

    yt-dlp is blocking, so extraction runs in the default executor and is
    bounded by ``asyncio.wait_for``. A timed out extraction keeps its
    executor thread until yt-dlp's own socket timeout fires.
    """

    def __init__(
        self,
        timeout_seconds: float = 15.0,
        cookies_file: Path | None = None,
        proxy: str | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            timeout_seconds: Upper bound for a single lookup.
            cookies_file: Path to cookies file for age or region gated videos.
            proxy: Proxy URL.
        """
        self._timeout_seconds = timeout_seconds
        self._cookies_file = cookies_file
        self._proxy = proxy
        self._logger = get_logger(__name__)

    def _get_opts(self) -> dict[str, Any]:
        opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
            "socket_timeout": self._timeout_seconds,
        }
        if self._cookies_file:
            opts["cookiefile"] = str(self._cookies_file)
        if self._proxy:
            opts["proxy"] = self._proxy
        return opts

    async def fetch(self, url: str) -> VideoMetadata:
        opts = self._get_opts()

        def _extract() -> dict[str, Any] | None:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(url, download=False)
                return dict(info) if info else None

        loop = asyncio.get_running_loop()
        try:
            info = await asyncio.wait_for(
                loop.run_in_executor(None, _extract),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as e:
            raise MetadataUnavailableException(
                url, f"timed out after {self._timeout_seconds}s"
            ) from e
        except yt_dlp.utils.YoutubeDLError as e:
            raise MetadataUnavailableException(url, str(e)) from e

        if not info:
            raise MetadataUnavailableException(url, "extractor returned no data")

        duration = info.get("duration")
        if not isinstance(duration, int | float) or duration < 0:
            raise MetadataUnavailableException(url, "duration missing")

        return VideoMetadata(
            title=info.get("title") or "",
            thumbnail_url=info.get("thumbnail") or "",
            duration_seconds=int(duration),
        )
