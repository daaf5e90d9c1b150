"""Enrichment dispatcher: notifies the remote worker about videos."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
)
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import LogContext, get_logger
from enrichment_hub.domain.exceptions import (
    ExternalServiceException,
    StorageException,
    VideoNotFoundException,
)
from enrichment_hub.domain.models.video import DispatchState, Video
from enrichment_hub.infrastructure.worker.base import (
    DispatchRequest,
    EnrichmentWorkerBase,
)


class DispatchStatus(str, Enum):
    """Result of a single dispatch call."""

    ACKNOWLEDGED = "acknowledged"
    ALREADY_ACKNOWLEDGED = "already_acknowledged"
    IN_FLIGHT = "in_flight"  # Another caller holds the claim
    FAILED = "failed"


@dataclass
class DispatchOutcome:
    """What happened when a dispatch was requested."""

    status: DispatchStatus
    video_id: str
    attempts: int = 0
    reason: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == DispatchStatus.FAILED


class EnrichmentDispatcher:
    """Drives the dispatch state machine of a video.

    Transitions:
        not_dispatched | failed | dispatched (lease expired) -> dispatched
        dispatched -> acknowledged | failed

    The move to ``dispatched`` is a conditional update, so two concurrent
    callers can never both send a request for the same video. The attempt
    counter taken with the claim fences the final write: a caller whose
    lease was taken over cannot overwrite the newer attempt's outcome.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        worker: EnrichmentWorkerBase,
        settings: Settings,
    ) -> None:
        self._document_db = document_db
        self._worker = worker
        self._collection = settings.document_db.collections.videos
        self._lease = timedelta(seconds=settings.worker.lease_seconds)
        self._alert_after = settings.worker.alert_after_attempts
        self._callback_root = (
            settings.worker.callback_base_url.rstrip("/")
            + settings.server.api_prefix.rstrip("/")
        )
        self._logger = get_logger(__name__)

    def callback_url(self, video_id: str) -> str:
        """Base address the worker posts artifacts to for this video."""
        return f"{self._callback_root}/videos/{video_id}"

    async def dispatch(self, video: Video) -> DispatchOutcome:
        """Notify the worker about a video unless that already succeeded.

        Safe to call any number of times, concurrently.

        Raises:
            StorageException: If dispatch state cannot be read or written.
        """
        if video.dispatch_acknowledged:
            return DispatchOutcome(
                DispatchStatus.ALREADY_ACKNOWLEDGED,
                video.id,
                attempts=video.dispatch_attempts,
            )

        with LogContext(video_id=video.id):
            claimed = await self._claim(video.id)
            if claimed is None:
                return await self._outcome_without_claim(video.id)

            attempt = int(claimed["dispatch_attempts"])
            request = DispatchRequest(
                video_id=video.id,
                source_url=claimed["source_url"],
                callback_url=self.callback_url(video.id),
            )

            try:
                await self._worker.notify(request)
            except ExternalServiceException as e:
                return await self._record_failure(video.id, attempt, e.reason)
            except Exception as e:  # noqa: BLE001
                # Unexpected client errors must not leave the claim dangling
                self._logger.exception("Unexpected error while dispatching")
                return await self._record_failure(
                    video.id, attempt, f"{type(e).__name__}: {e}"
                )

            await self._finish(
                video.id,
                attempt,
                {
                    "dispatch_state": DispatchState.ACKNOWLEDGED.value,
                    "dispatch_error": None,
                    "dispatch_lease_expires_at": None,
                },
            )
            self._logger.info(
                "Worker acknowledged dispatch", extra={"attempt": attempt}
            )
            return DispatchOutcome(
                DispatchStatus.ACKNOWLEDGED, video.id, attempts=attempt
            )

    async def _claim(self, video_id: str) -> dict[str, Any] | None:
        now = datetime.now(UTC)
        eligible = {
            "id": video_id,
            "$or": [
                {
                    "dispatch_state": {
                        "$in": [
                            DispatchState.NOT_DISPATCHED.value,
                            DispatchState.FAILED.value,
                        ]
                    }
                },
                {
                    "dispatch_state": DispatchState.DISPATCHED.value,
                    "dispatch_lease_expires_at": {"$lte": now},
                },
                {
                    "dispatch_state": DispatchState.DISPATCHED.value,
                    "dispatch_lease_expires_at": None,
                },
            ],
        }
        try:
            return await self._document_db.find_one_and_update(
                self._collection,
                eligible,
                {
                    "dispatch_state": DispatchState.DISPATCHED.value,
                    "dispatch_lease_expires_at": now + self._lease,
                    "updated_at": now,
                },
                increments={"dispatch_attempts": 1},
            )
        except DocumentDBError as e:
            raise StorageException("claim dispatch", e.reason) from e

    async def _outcome_without_claim(self, video_id: str) -> DispatchOutcome:
        try:
            document = await self._document_db.find_by_id(self._collection, video_id)
        except DocumentDBError as e:
            raise StorageException("read dispatch state", e.reason) from e
        if document is None:
            raise VideoNotFoundException(video_id)

        attempts = int(document.get("dispatch_attempts", 0))
        if document.get("dispatch_state") == DispatchState.ACKNOWLEDGED.value:
            return DispatchOutcome(
                DispatchStatus.ALREADY_ACKNOWLEDGED, video_id, attempts=attempts
            )
        self._logger.debug("Dispatch already in flight, skipping")
        return DispatchOutcome(DispatchStatus.IN_FLIGHT, video_id, attempts=attempts)

    async def _record_failure(
        self, video_id: str, attempt: int, reason: str
    ) -> DispatchOutcome:
        await self._finish(
            video_id,
            attempt,
            {
                "dispatch_state": DispatchState.FAILED.value,
                "dispatch_error": reason,
                "dispatch_lease_expires_at": None,
            },
        )

        level_args = {"extra": {"attempt": attempt, "reason": reason}}
        if attempt >= self._alert_after:
            self._logger.error("Dispatch keeps failing", **level_args)
        else:
            self._logger.warning("Dispatch failed", **level_args)
        return DispatchOutcome(
            DispatchStatus.FAILED, video_id, attempts=attempt, reason=reason
        )

    async def _finish(
        self, video_id: str, attempt: int, updates: dict[str, Any]
    ) -> None:
        """Write the outcome of an attempt if no newer attempt took over."""
        updates["updated_at"] = datetime.now(UTC)
        try:
            result = await self._document_db.find_one_and_update(
                self._collection,
                {
                    "id": video_id,
                    "dispatch_state": DispatchState.DISPATCHED.value,
                    "dispatch_attempts": attempt,
                },
                updates,
            )
        except DocumentDBError as e:
            raise StorageException("record dispatch outcome", e.reason) from e

        if result is None:
            self._logger.warning(
                "Dispatch outcome discarded, a newer attempt owns the record",
                extra={"attempt": attempt},
            )
