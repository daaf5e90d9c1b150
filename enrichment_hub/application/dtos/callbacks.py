"""Versioned payloads the enrichment worker posts back.

Every payload carries ``version`` (currently 1) and rejects unknown fields.
Field names used by earlier worker releases (``english``, ``timestamp``,
``Summary_eng``, ``concept``, ``Questions``, ``correctAnswer``) are accepted
as aliases. Individual transcript entries and quiz items are validated
later, one by one, so a single malformed item does not reject the batch.
"""

import json
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

CALLBACK_CONTRACT_VERSION = 1


class CallbackPayload(BaseModel):
    """Fields shared by every callback."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    version: Literal[1] = CALLBACK_CONTRACT_VERSION
    id: str | None = Field(
        default=None,
        description="Video id echoed by the worker; must match the path",
    )


class TranscriptEntryPayload(BaseModel):
    """Raw transcript line; converted to a TranscriptEntry by the handler."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time_range: Any = Field(
        default=None,
        validation_alias=AliasChoices("time_range", "timeRange", "timestamp"),
    )
    text: Any = None


class TranscriptCallback(CallbackPayload):
    """Full transcript for one or both language tracks."""

    original: list[Any] | None = None
    normalized: list[Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("normalized", "english"),
        description="English track; this is the one that gets indexed",
    )


class SummaryCallback(CallbackPayload):
    """Summary in one or both language tracks."""

    normalized: str | None = Field(
        default=None,
        validation_alias=AliasChoices("normalized", "Summary_eng", "english"),
    )
    original: str | None = None


class ConceptQuestionPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    question: str = Field(min_length=1)
    answers: list[str] = Field(default_factory=list)


class KeyConceptsCallback(CallbackPayload):
    """Key concepts; only provided fields are updated."""

    primary: str | None = Field(
        default=None,
        validation_alias=AliasChoices("primary", "concept"),
    )
    secondary: list[ConceptQuestionPayload] | None = None
    description: str | None = None

    @field_validator("primary")
    @classmethod
    def _strip_primary(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


class DescriptionCallback(CallbackPayload):
    """Free-text description of the video."""

    description: str = Field(min_length=1)


class ShortQuestionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: Any = None
    answer: Any = None


class MultipleChoicePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    question: Any = None
    options: Any = None
    correct_answer: Any = Field(
        default=None,
        validation_alias=AliasChoices("correct_answer", "correctAnswer"),
    )


class QuizItemsCallback(CallbackPayload):
    """Quiz items; each delivered list replaces the stored one."""

    short_questions: list[Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("short_questions", "Questions"),
    )
    mcqs: list[Any] | None = None

    @field_validator("short_questions", mode="before")
    @classmethod
    def _decode_json_string(cls, value: Any) -> Any:
        # Older workers send the short questions as a JSON encoded string
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"short questions are not valid JSON: {e.msg}") from e
        return value


class CallbackResponse(BaseModel):
    """Result of applying a callback."""

    video_id: str
    artifact: str
    accepted: int = Field(default=0, description="Items stored")
    dropped: int = Field(default=0, description="Malformed items skipped")
    indexing_scheduled: bool = False
