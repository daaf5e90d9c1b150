"""Abstract base class for the remote enrichment worker client."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

DISPATCH_CONTRACT_VERSION = 1


@dataclass
class DispatchRequest:
    """Notification sent to the worker for one video."""

    video_id: str
    source_url: str
    callback_url: str
    version: int = DISPATCH_CONTRACT_VERSION

    def to_payload(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "video_id": self.video_id,
            "source_url": self.source_url,
            "callback_url": self.callback_url,
        }


@dataclass
class WorkerAcknowledgement:
    """Well-formed positive answer from the worker."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


class EnrichmentWorkerBase(ABC):
    """Client for the remote enrichment worker."""

    @abstractmethod
    async def notify(self, request: DispatchRequest) -> WorkerAcknowledgement:
        """Ask the worker to enrich a video.

        Returns only when the worker acknowledged the request.

        Raises:
            WorkerDispatchException: On timeout, transport error, non-2xx
                status, a body that is not a non-empty JSON object, or an
                explicit ``accepted: false``.
        """

    async def close(self) -> None:  # noqa: B027
        """Release client resources. No-op by default."""
