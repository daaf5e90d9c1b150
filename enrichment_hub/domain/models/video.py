"""Video domain model."""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

TITLE_UNAVAILABLE = "Title Unavailable"
DURATION_UNKNOWN = "Unknown"
DEFAULT_THUMBNAIL_URL = (
    "https://havecamerawilltravel.com/wp-content/uploads/2020/01/"
    "youtube-thumbnails-size-header-1-800x450.png"
)


class DispatchState(str, Enum):
    """Where a video stands with the enrichment worker."""

    NOT_DISPATCHED = "not_dispatched"  # Never claimed
    DISPATCHED = "dispatched"  # Claimed, request in flight
    ACKNOWLEDGED = "acknowledged"  # Worker confirmed receipt
    FAILED = "failed"  # Last attempt failed, eligible for retry


class TranscriptEntry(BaseModel):
    """A single timed line of transcript text."""

    time_range: list[float] = Field(
        min_length=1,
        max_length=2,
        description="[start, end] or [offset] in seconds",
    )
    text: str = Field(min_length=1)

    @field_validator("time_range")
    @classmethod
    def _check_time_range(cls, value: list[float]) -> list[float]:
        if any(not math.isfinite(t) or t < 0 for t in value):
            raise ValueError("time marks must be finite and non-negative")
        if len(value) == 2 and value[0] > value[1]:
            raise ValueError("start must not be after end")
        return value

    @field_validator("text")
    @classmethod
    def _check_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value.strip()


class TranscriptTracks(BaseModel):
    """Parallel language tracks of a transcript."""

    original: list[TranscriptEntry] = Field(default_factory=list)
    normalized: list[TranscriptEntry] = Field(
        default_factory=list,
        description="English track, the one that gets indexed",
    )


class Summary(BaseModel):
    """Summary in both language tracks."""

    normalized: str = "NA"
    original: str = "NA"


class ConceptQuestion(BaseModel):
    """A secondary key concept phrased as a question."""

    question: str
    answers: list[str] = Field(default_factory=list)


class KeyConcepts(BaseModel):
    """Key concepts extracted by the worker."""

    primary: str = "NA"
    secondary: list[ConceptQuestion] = Field(default_factory=list)
    description: str = "No description available yet"


class ShortQuestion(BaseModel):
    """Open question with an optional reference answer."""

    question: str = Field(min_length=1)
    answer: str = ""


class MultipleChoiceQuestion(BaseModel):
    """Multiple choice question."""

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_answer: str

    @model_validator(mode="after")
    def _check_answer(self) -> Self:
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class QuizItems(BaseModel):
    """Quiz material generated for a video."""

    short_questions: list[ShortQuestion] = Field(default_factory=list)
    mcqs: list[MultipleChoiceQuestion] = Field(default_factory=list)


class Video(BaseModel):
    """Canonical record for one externally hosted video.

    This is the aggregate root of the registry. Exactly one record exists per
    ``source_url``; enrichment artifacts are filled in later by worker
    callbacks and are absent (defaults) until then.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this video record",
    )
    source_url: str = Field(description="Canonical source URL, unique")
    title: str = Field(default=TITLE_UNAVAILABLE)
    thumbnail_url: str = Field(default=DEFAULT_THUMBNAIL_URL)
    duration_label: str = Field(default=DURATION_UNKNOWN)
    duration_seconds: int | None = Field(default=None, ge=0)
    metadata_available: bool = Field(
        default=False,
        description="Whether the metadata provider answered",
    )

    dispatch_state: DispatchState = Field(default=DispatchState.NOT_DISPATCHED)
    dispatch_attempts: int = Field(default=0, ge=0)
    dispatch_error: str | None = None
    dispatch_lease_expires_at: datetime | None = None

    transcript: TranscriptTracks = Field(default_factory=TranscriptTracks)
    summary: Summary = Field(default_factory=Summary)
    key_concepts: KeyConcepts = Field(default_factory=KeyConcepts)
    description: str = Field(default="No description available yet")
    quiz_items: QuizItems = Field(default_factory=QuizItems)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this record was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last update timestamp",
    )

    @property
    def dispatch_acknowledged(self) -> bool:
        """True only once the worker confirmed receipt."""
        return self.dispatch_state == DispatchState.ACKNOWLEDGED

    def with_metadata(
        self,
        *,
        title: str,
        thumbnail_url: str,
        duration_seconds: int,
    ) -> Self:
        """Create a new instance populated from provider metadata."""
        return self.model_copy(
            update={
                "title": title or TITLE_UNAVAILABLE,
                "thumbnail_url": thumbnail_url or DEFAULT_THUMBNAIL_URL,
                "duration_seconds": duration_seconds,
                "duration_label": format_duration(duration_seconds),
                "metadata_available": True,
                "updated_at": datetime.now(UTC),
            }
        )


def format_duration(duration_seconds: int) -> str:
    """Format seconds as M:SS, or H:MM:SS past an hour."""
    hours, remainder = divmod(duration_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:d}:{seconds:02d}"
