"""DTOs for video ingestion and dispatch operations."""

from datetime import datetime

from pydantic import BaseModel, Field

from enrichment_hub.domain.models.video import (
    DispatchState,
    KeyConcepts,
    QuizItems,
    Summary,
    TranscriptTracks,
    Video,
)


class IngestVideoRequest(BaseModel):
    """Request to register a video."""

    source_url: str = Field(
        description="URL of the externally hosted video",
    )
    user_id: str | None = Field(
        default=None,
        description="Add the video to this user's watch history",
    )


class VideoSummaryDTO(BaseModel):
    """Descriptive fields and dispatch status of a video."""

    id: str
    source_url: str
    title: str
    thumbnail_url: str
    duration_label: str
    duration_seconds: int | None
    metadata_available: bool
    dispatch_state: DispatchState
    dispatch_acknowledged: bool
    dispatch_attempts: int
    dispatch_error: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_video(cls, video: Video) -> "VideoSummaryDTO":
        return cls(
            id=video.id,
            source_url=video.source_url,
            title=video.title,
            thumbnail_url=video.thumbnail_url,
            duration_label=video.duration_label,
            duration_seconds=video.duration_seconds,
            metadata_available=video.metadata_available,
            dispatch_state=video.dispatch_state,
            dispatch_acknowledged=video.dispatch_acknowledged,
            dispatch_attempts=video.dispatch_attempts,
            dispatch_error=video.dispatch_error,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )


class VideoDetailDTO(VideoSummaryDTO):
    """Video with every enrichment artifact received so far."""

    transcript: TranscriptTracks
    summary: Summary
    key_concepts: KeyConcepts
    description: str
    quiz_items: QuizItems

    @classmethod
    def from_video(cls, video: Video) -> "VideoDetailDTO":
        base = VideoSummaryDTO.from_video(video).model_dump()
        return cls(
            **base,
            transcript=video.transcript,
            summary=video.summary,
            key_concepts=video.key_concepts,
            description=video.description,
            quiz_items=video.quiz_items,
        )


class IngestVideoResponse(BaseModel):
    """Result of registering a video."""

    video: VideoSummaryDTO
    created: bool = Field(description="Whether this call created the record")
    already_in_history: bool | None = Field(
        default=None,
        description="Whether the video was already in the user's history",
    )
    dispatch_scheduled: bool = False
    message: str


class DispatchResponse(BaseModel):
    """Outcome of a manual dispatch."""

    video_id: str
    status: str
    attempts: int
    reason: str | None = None
