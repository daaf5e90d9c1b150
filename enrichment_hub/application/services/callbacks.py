"""Applies enrichment artifacts posted back by the worker."""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from enrichment_hub.application.dtos.callbacks import (
    CallbackPayload,
    CallbackResponse,
    DescriptionCallback,
    KeyConceptsCallback,
    MultipleChoicePayload,
    QuizItemsCallback,
    ShortQuestionPayload,
    SummaryCallback,
    TranscriptCallback,
    TranscriptEntryPayload,
)
from enrichment_hub.application.services.background import BackgroundTaskRunner
from enrichment_hub.application.services.indexer import TranscriptIndexer
from enrichment_hub.application.services.registry import video_from_document
from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
)
from enrichment_hub.commons.settings.models import Settings
from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.domain.exceptions import (
    EmptyTranscriptException,
    InvalidCallbackPayloadException,
    StorageException,
    VideoNotFoundException,
)
from enrichment_hub.domain.models.video import (
    ConceptQuestion,
    MultipleChoiceQuestion,
    ShortQuestion,
    TranscriptEntry,
)

M = TypeVar("M", bound=BaseModel)


def _keep_valid(
    items: Iterable[Any],
    parse: Callable[[Any], M],
) -> tuple[list[M], int]:
    """Parse items one by one, dropping the ones that fail validation."""
    kept: list[M] = []
    dropped = 0
    for item in items:
        try:
            kept.append(parse(item))
        except (ValidationError, ValueError, TypeError):
            dropped += 1
    return kept, dropped


def _transcript_entry(raw: Any) -> TranscriptEntry:
    entry = TranscriptEntryPayload.model_validate(raw)
    return TranscriptEntry(time_range=entry.time_range, text=entry.text)


def _short_question(raw: Any) -> ShortQuestion:
    item = ShortQuestionPayload.model_validate(raw)
    return ShortQuestion(question=item.question, answer=item.answer or "")


def _multiple_choice(raw: Any) -> MultipleChoiceQuestion:
    item = MultipleChoicePayload.model_validate(raw)
    return MultipleChoiceQuestion(
        question=item.question,
        options=item.options,
        correct_answer=item.correct_answer,
    )


class EnrichmentCallbackHandler:
    """Merges worker results into video records.

    Each artifact is written with field-level updates, so callbacks, the
    dispatcher and other writers never overwrite each other's fields.
    Callbacks may arrive any number of times and in any order.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        settings: Settings,
        indexer: TranscriptIndexer | None = None,
        runner: BackgroundTaskRunner | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            document_db: Store holding the videos collection.
            settings: Application settings.
            indexer: Transcript indexer; indexing is skipped without one.
            runner: Background runner indexing is scheduled on.
        """
        self._document_db = document_db
        self._collection = settings.document_db.collections.videos
        self._indexer = indexer if settings.indexing.enabled else None
        self._runner = runner
        self._logger = get_logger(__name__)

    async def apply_transcript(
        self, video_id: str, payload: TranscriptCallback
    ) -> CallbackResponse:
        """Replace the delivered transcript tracks.

        A delivered normalized track schedules a refresh of the video's
        index entries. An empty track removes them.
        """
        self._check_id(video_id, "transcript", payload)
        if payload.original is None and payload.normalized is None:
            raise InvalidCallbackPayloadException("transcript", "no track provided")

        updates: dict[str, Any] = {}
        accepted = dropped = 0
        normalized: list[TranscriptEntry] | None = None
        for track in ("original", "normalized"):
            raw_entries = getattr(payload, track)
            if raw_entries is None:
                continue
            entries, skipped = _keep_valid(raw_entries, _transcript_entry)
            updates[f"transcript.{track}"] = [e.model_dump() for e in entries]
            accepted += len(entries)
            dropped += skipped
            if track == "normalized":
                normalized = entries

        await self._update(video_id, updates)
        if dropped:
            self._logger.warning(
                "Dropped malformed transcript entries",
                extra={"video_id": video_id, "dropped": dropped},
            )

        scheduled = False
        if normalized is not None:
            scheduled = self._schedule_indexing(video_id)

        return CallbackResponse(
            video_id=video_id,
            artifact="transcript",
            accepted=accepted,
            dropped=dropped,
            indexing_scheduled=scheduled,
        )

    async def apply_summary(
        self, video_id: str, payload: SummaryCallback
    ) -> CallbackResponse:
        self._check_id(video_id, "summary", payload)
        updates = {
            f"summary.{name}": value
            for name, value in (
                ("normalized", payload.normalized),
                ("original", payload.original),
            )
            if value is not None
        }
        if not updates:
            raise InvalidCallbackPayloadException("summary", "no summary provided")

        await self._update(video_id, updates)
        return CallbackResponse(
            video_id=video_id, artifact="summary", accepted=len(updates)
        )

    async def apply_key_concepts(
        self, video_id: str, payload: KeyConceptsCallback
    ) -> CallbackResponse:
        self._check_id(video_id, "keyconcepts", payload)
        updates: dict[str, Any] = {}
        if payload.primary is not None:
            updates["key_concepts.primary"] = payload.primary
        if payload.secondary is not None:
            updates["key_concepts.secondary"] = [
                ConceptQuestion(**item.model_dump()).model_dump()
                for item in payload.secondary
            ]
        if payload.description is not None:
            updates["key_concepts.description"] = payload.description
        if not updates:
            raise InvalidCallbackPayloadException("keyconcepts", "no concept provided")

        await self._update(video_id, updates)
        return CallbackResponse(
            video_id=video_id, artifact="keyconcepts", accepted=len(updates)
        )

    async def apply_quiz_items(
        self, video_id: str, payload: QuizItemsCallback
    ) -> CallbackResponse:
        """Replace each delivered quiz list; redelivery is idempotent."""
        self._check_id(video_id, "qnas", payload)
        if payload.short_questions is None and payload.mcqs is None:
            raise InvalidCallbackPayloadException("qnas", "no questions provided")

        updates: dict[str, Any] = {}
        accepted = dropped = 0
        if payload.short_questions is not None:
            shorts, skipped = _keep_valid(payload.short_questions, _short_question)
            updates["quiz_items.short_questions"] = [q.model_dump() for q in shorts]
            accepted += len(shorts)
            dropped += skipped
        if payload.mcqs is not None:
            mcqs, skipped = _keep_valid(payload.mcqs, _multiple_choice)
            updates["quiz_items.mcqs"] = [q.model_dump() for q in mcqs]
            accepted += len(mcqs)
            dropped += skipped

        await self._update(video_id, updates)
        if dropped:
            self._logger.warning(
                "Dropped malformed quiz items",
                extra={"video_id": video_id, "dropped": dropped},
            )
        return CallbackResponse(
            video_id=video_id, artifact="qnas", accepted=accepted, dropped=dropped
        )

    async def apply_description(
        self, video_id: str, payload: DescriptionCallback
    ) -> CallbackResponse:
        self._check_id(video_id, "description", payload)
        await self._update(video_id, {"description": payload.description})
        return CallbackResponse(video_id=video_id, artifact="description", accepted=1)

    def _check_id(self, video_id: str, artifact: str, payload: CallbackPayload) -> None:
        if payload.id is not None and payload.id != video_id:
            raise InvalidCallbackPayloadException(
                artifact, f"body id '{payload.id}' does not match path id"
            )

    async def _update(self, video_id: str, updates: dict[str, Any]) -> None:
        updates = {**updates, "updated_at": datetime.now(UTC)}
        try:
            found = await self._document_db.update(self._collection, video_id, updates)
        except DocumentDBError as e:
            raise StorageException("apply callback", e.reason) from e
        if not found:
            raise VideoNotFoundException(video_id)

    async def _normalized_text(self, video_id: str) -> str:
        try:
            document = await self._document_db.find_by_id(self._collection, video_id)
        except DocumentDBError as e:
            raise StorageException("read transcript", e.reason) from e
        if document is None:
            raise VideoNotFoundException(video_id)
        video = video_from_document(document)
        return " ".join(entry.text for entry in video.transcript.normalized)

    def _schedule_indexing(self, video_id: str) -> bool:
        if self._indexer is None or self._runner is None:
            return False

        indexer = self._indexer

        # Reads the stored track at run time so the latest delivery wins
        async def _refresh_index() -> None:
            text = await self._normalized_text(video_id)
            try:
                await indexer.index(video_id, text)
            except EmptyTranscriptException:
                await indexer.remove(video_id)

        self._runner.submit("index_transcript", video_id, _refresh_index, exclusive=True)
        return True
