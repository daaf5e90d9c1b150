"""Video registration and dispatch endpoints."""

from fastapi import APIRouter, Response, status

from enrichment_hub.api.dependencies import IngestionServiceDep
from enrichment_hub.application.dtos.ingestion import (
    DispatchResponse,
    IngestVideoRequest,
    IngestVideoResponse,
    VideoDetailDTO,
)

router = APIRouter()


@router.post(
    "/videos",
    response_model=IngestVideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a video",
    description=(
        "Find or create the video for a source URL. Returns 201 when the "
        "record was created and 200 when it already existed. Dispatch to the "
        "enrichment worker runs in the background."
    ),
    responses={
        200: {"description": "Video already registered"},
        400: {"description": "Invalid source URL"},
        409: {"description": "Video longer than the allowed duration"},
    },
)
async def register_video(
    request: IngestVideoRequest,
    response: Response,
    service: IngestionServiceDep,
) -> IngestVideoResponse:
    result = await service.ingest(request)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result


@router.get(
    "/videos/{video_id}",
    response_model=VideoDetailDTO,
    summary="Get video details",
    description="Get a video with every enrichment artifact received so far.",
)
async def get_video(
    video_id: str,
    service: IngestionServiceDep,
) -> VideoDetailDTO:
    video = await service.get_video(video_id)
    return VideoDetailDTO.from_video(video)


@router.post(
    "/videos/{video_id}/dispatch",
    response_model=DispatchResponse,
    summary="Dispatch a video now",
    description=(
        "Notify the enrichment worker immediately and wait for its answer. "
        "Does nothing when the worker already acknowledged the video."
    ),
)
async def dispatch_video(
    video_id: str,
    service: IngestionServiceDep,
) -> DispatchResponse:
    """Manual retry for videos whose background dispatch gave up."""
    outcome = await service.dispatch_now(video_id)
    return DispatchResponse(
        video_id=outcome.video_id,
        status=outcome.status.value,
        attempts=outcome.attempts,
        reason=outcome.reason,
    )
