"""Video ingestion: registration, watch history and background dispatch."""

from enrichment_hub.application.dtos.ingestion import (
    IngestVideoRequest,
    IngestVideoResponse,
    VideoSummaryDTO,
)
from enrichment_hub.application.services.background import BackgroundTaskRunner
from enrichment_hub.application.services.dispatcher import (
    DispatchOutcome,
    EnrichmentDispatcher,
)
from enrichment_hub.application.services.registry import VideoRegistry
from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
)
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import LogContext, get_logger
from enrichment_hub.domain.exceptions import (
    StorageException,
    WorkerDispatchException,
)
from enrichment_hub.domain.models.video import Video

WATCH_HISTORY_FIELD = "video_ids"


class VideoIngestionService:
    """Client-facing entry point for registering videos.

    The response is returned as soon as the video is durably resolved.
    Notifying the enrichment worker happens afterwards on the background
    runner, which retries failed dispatches with backoff.
    """

    def __init__(
        self,
        registry: VideoRegistry,
        dispatcher: EnrichmentDispatcher | None,
        runner: BackgroundTaskRunner,
        document_db: DocumentDBBase,
        settings: Settings,
    ) -> None:
        """Initialize the service.

        Args:
            registry: Canonical video registry.
            dispatcher: Worker dispatcher; None when no worker is configured.
            runner: Background runner dispatches are scheduled on.
            document_db: Store holding the watch history collection.
            settings: Application settings.
        """
        self._registry = registry
        self._dispatcher = dispatcher
        self._runner = runner
        self._document_db = document_db
        self._history_collection = settings.document_db.collections.watch_history
        self._dispatch_on_ingest = settings.ingestion.dispatch_on_ingest
        self._logger = get_logger(__name__)

    async def ingest(self, request: IngestVideoRequest) -> IngestVideoResponse:
        """Register a video and schedule its dispatch.

        Raises:
            InvalidVideoUrlException: If the URL is empty or malformed.
            DurationExceededException: If the video is longer than allowed.
            StorageException: If the store fails.
        """
        video, created = await self._registry.resolve(request.source_url)

        with LogContext(video_id=video.id):
            already_in_history: bool | None = None
            if request.user_id:
                already_in_history = await self._remember(request.user_id, video.id)

            scheduled = False
            if self._dispatch_on_ingest and not video.dispatch_acknowledged:
                scheduled = self.schedule_dispatch(video)

            self._logger.info(
                "Video ingested",
                extra={"video_created": created, "dispatch_scheduled": scheduled},
            )

        if created:
            message = "Video registered"
        elif video.dispatch_acknowledged:
            message = "Video already registered and processed"
        else:
            message = "Video already registered"

        return IngestVideoResponse(
            video=VideoSummaryDTO.from_video(video),
            created=created,
            already_in_history=already_in_history,
            dispatch_scheduled=scheduled,
            message=message,
        )

    async def get_video(self, video_id: str) -> Video:
        return await self._registry.get(video_id)

    def schedule_dispatch(self, video: Video) -> bool:
        """Queue a dispatch on the background runner.

        Returns:
            False if no worker is configured, True otherwise.
        """
        if self._dispatcher is None:
            self._logger.debug("No enrichment worker configured, not dispatching")
            return False

        dispatcher = self._dispatcher

        async def _dispatch() -> None:
            outcome = await dispatcher.dispatch(video)
            if outcome.failed:
                # Raising hands the failure to the runner's retry policy
                raise WorkerDispatchException(video.id, outcome.reason or "failed")

        self._runner.submit(
            "dispatch",
            video.id,
            _dispatch,
            retry_on=(WorkerDispatchException,),
        )
        return True

    async def dispatch_now(self, video_id: str) -> DispatchOutcome:
        """Dispatch a video immediately, waiting for the worker's answer.

        Raises:
            VideoNotFoundException: If no such video exists.
            WorkerDispatchException: If no worker is configured.
        """
        video = await self._registry.get(video_id)
        if self._dispatcher is None:
            raise WorkerDispatchException(video_id, "no enrichment worker configured")
        return await self._dispatcher.dispatch(video)

    async def _remember(self, user_id: str, video_id: str) -> bool:
        """Add a video to a user's history; True if it was already there."""
        try:
            added = await self._document_db.add_to_set(
                self._history_collection, user_id, WATCH_HISTORY_FIELD, video_id
            )
        except DocumentDBError as e:
            raise StorageException("update watch history", e.reason) from e
        return not added
