"""HTTP client for the remote enrichment worker."""

from typing import Any

import httpx

from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.domain.exceptions import WorkerDispatchException
from enrichment_hub.infrastructure.worker.base import (
    DispatchRequest,
    EnrichmentWorkerBase,
    WorkerAcknowledgement,
)


class HttpEnrichmentWorker(EnrichmentWorkerBase):
    """Posts dispatch requests to the worker's HTTP endpoint.

    The worker answers synchronously with a small JSON acknowledgement and
    reports results later through the callback URL it was given.
    """

    def __init__(
        self,
        base_url: str,
        dispatch_path: str = "/process",
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the worker client.

        Args:
            base_url: Worker base URL.
            dispatch_path: Path of the dispatch endpoint.
            api_key: Optional bearer token.
            timeout_seconds: Timeout for the whole request.
            transport: Optional transport override, used in tests.
        """
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._dispatch_url = f"{base_url.rstrip('/')}/{dispatch_path.lstrip('/')}"
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self._logger = get_logger(__name__)

    async def notify(self, request: DispatchRequest) -> WorkerAcknowledgement:
        video_id = request.video_id
        try:
            response = await self._client.post(
                self._dispatch_url,
                json=request.to_payload(),
            )
        except httpx.TimeoutException as e:
            raise WorkerDispatchException(video_id, "worker timed out") from e
        except httpx.HTTPError as e:
            raise WorkerDispatchException(
                video_id, f"transport error: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            raise WorkerDispatchException(
                video_id, f"worker answered HTTP {response.status_code}"
            )

        body = self._parse_body(video_id, response)
        if body.get("accepted") is False:
            raise WorkerDispatchException(video_id, "worker declined the request")

        self._logger.debug(
            "Worker acknowledged dispatch",
            extra={"video_id": video_id, "status_code": response.status_code},
        )
        return WorkerAcknowledgement(status_code=response.status_code, body=body)

    @staticmethod
    def _parse_body(video_id: str, response: httpx.Response) -> dict[str, Any]:
        """Decode the acknowledgement; anything but a non-empty object is rejected."""
        try:
            body = response.json()
        except ValueError as e:
            raise WorkerDispatchException(video_id, "worker answer is not JSON") from e

        if not isinstance(body, dict) or not body:
            raise WorkerDispatchException(
                video_id, "worker answer is not a non-empty JSON object"
            )
        return body

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
