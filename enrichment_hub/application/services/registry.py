"""Video registry: canonical find-or-create of videos by source URL."""

from typing import Any

from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
    DuplicateDocumentError,
)
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import LogContext, get_logger, timed
from enrichment_hub.domain.exceptions import (
    DurationExceededException,
    StorageException,
    VideoNotFoundException,
)
from enrichment_hub.domain.models.video import Video
from enrichment_hub.domain.value_objects.video_url import VideoUrl
from enrichment_hub.infrastructure.metadata.base import MetadataProviderBase

SOURCE_URL_INDEX = "uq_source_url"


def video_to_document(video: Video) -> dict[str, Any]:
    """Serialize a video for the document store."""
    document = video.model_dump()
    document["dispatch_state"] = video.dispatch_state.value
    return document


def video_from_document(document: dict[str, Any]) -> Video:
    """Rebuild a video from its stored document."""
    return Video.model_validate(document)


class VideoRegistry:
    """Owns the canonical Video records.

    Exactly one record exists per source URL. Creation is a find-or-create
    backed by a unique index, so racing resolves for the same new URL both
    return the same record.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        settings: Settings,
        metadata_provider: MetadataProviderBase | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            document_db: Document store holding the videos collection.
            settings: Application settings.
            metadata_provider: Optional metadata lookup. Without one, new
                videos always get placeholder metadata.
        """
        self._document_db = document_db
        self._metadata = metadata_provider if settings.metadata.enabled else None
        self._collection = settings.document_db.collections.videos
        self._max_duration = settings.ingestion.max_duration_seconds
        self._logger = get_logger(__name__)

    async def ensure_indexes(self) -> None:
        """Create the unique source URL index. Safe to call repeatedly."""
        try:
            await self._document_db.create_index(
                self._collection,
                [("source_url", 1)],
                unique=True,
                name=SOURCE_URL_INDEX,
            )
        except DocumentDBError as e:
            raise StorageException("create_index", e.reason) from e

    async def get(self, video_id: str) -> Video:
        """Load a video by id.

        Raises:
            VideoNotFoundException: If no such video exists.
            StorageException: If the store fails.
        """
        try:
            document = await self._document_db.find_by_id(self._collection, video_id)
        except DocumentDBError as e:
            raise StorageException("get video", e.reason) from e
        if document is None:
            raise VideoNotFoundException(video_id)
        return video_from_document(document)

    async def find_by_url(self, source_url: str) -> Video | None:
        try:
            document = await self._document_db.find_one(
                self._collection, {"source_url": source_url}
            )
        except DocumentDBError as e:
            raise StorageException("find video by url", e.reason) from e
        return video_from_document(document) if document else None

    @timed
    async def resolve(self, source_url: str) -> tuple[Video, bool]:
        """Find the video for a URL, creating it on first reference.

        Args:
            source_url: Raw URL submitted by the client.

        Returns:
            Tuple of (video, created).

        Raises:
            InvalidVideoUrlException: If the URL is empty or malformed.
            DurationExceededException: If the video is longer than allowed.
            StorageException: If the store fails.
        """
        url = VideoUrl.parse(source_url)

        existing = await self.find_by_url(url.value)
        if existing is not None:
            return existing, False

        with LogContext(source_url=url.value):
            video = await self._build_video(url)

            try:
                await self._document_db.insert(
                    self._collection, video_to_document(video)
                )
            except DuplicateDocumentError:
                # Lost a race against a concurrent resolve of the same URL
                winner = await self.find_by_url(url.value)
                if winner is None:
                    raise StorageException(
                        "insert video", "duplicate reported but no record found"
                    ) from None
                self._logger.info(
                    "Concurrent registration detected, returning existing video",
                    extra={"video_id": winner.id},
                )
                return winner, False
            except DocumentDBError as e:
                raise StorageException("insert video", e.reason) from e

            self._logger.info(
                "Registered new video",
                extra={
                    "video_id": video.id,
                    "metadata_available": video.metadata_available,
                },
            )
            return video, True

    async def _build_video(self, url: VideoUrl) -> Video:
        """Create the new record, with metadata when the provider answers."""
        video = Video(source_url=url.value)
        if self._metadata is None:
            return video

        try:
            metadata = await self._metadata.fetch(url.value)
        except Exception as e:  # noqa: BLE001
            # Metadata never blocks registration
            self._logger.warning(
                "Metadata unavailable, using placeholders",
                extra={"reason": str(e), "error_type": type(e).__name__},
            )
            return video

        if self._max_duration is not None and (
            metadata.duration_seconds > self._max_duration
        ):
            raise DurationExceededException(
                url.value, metadata.duration_seconds, self._max_duration
            )

        return video.with_metadata(
            title=metadata.title,
            thumbnail_url=metadata.thumbnail_url,
            duration_seconds=metadata.duration_seconds,
        )
