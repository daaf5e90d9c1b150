"""Unit tests for EnrichmentCallbackHandler."""

import asyncio

import pytest
from pydantic import ValidationError

from enrichment_hub.application.dtos.callbacks import (
    DescriptionCallback,
    KeyConceptsCallback,
    QuizItemsCallback,
    SummaryCallback,
    TranscriptCallback,
)
from enrichment_hub.application.services.background import BackgroundTaskRunner
from enrichment_hub.application.services.callbacks import EnrichmentCallbackHandler
from enrichment_hub.application.services.indexer import TranscriptIndexer
from enrichment_hub.application.services.registry import (
    video_from_document,
    video_to_document,
)
from enrichment_hub.commons.infrastructure.documentdb.base import DocumentDBError
from enrichment_hub.domain.exceptions import (
    InvalidCallbackPayloadException,
    StorageException,
    VideoNotFoundException,
)
from enrichment_hub.domain.models.video import DispatchState, Video

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def runner(settings, document_db):
    return BackgroundTaskRunner(settings.background, document_db)


@pytest.fixture
def indexer(embedder, vector_db, settings):
    return TranscriptIndexer(embedder, vector_db, settings)


@pytest.fixture
def handler(document_db, settings, indexer, runner):
    return EnrichmentCallbackHandler(document_db, settings, indexer=indexer, runner=runner)


@pytest.fixture
async def video(document_db, settings):
    video = Video(source_url=URL, dispatch_state=DispatchState.ACKNOWLEDGED)
    await document_db.insert(
        settings.document_db.collections.videos, video_to_document(video)
    )
    return video


@pytest.fixture
def reload(document_db, settings):
    async def _reload(video_id: str) -> Video:
        document = await document_db.find_by_id(
            settings.document_db.collections.videos, video_id
        )
        return video_from_document(document)

    return _reload


# =============================================================================
# Transcript
# =============================================================================


class TestTranscriptCallback:
    async def test_stores_tracks_and_schedules_indexing(
        self, handler, runner, video, reload, vector_db, settings
    ):
        payload = TranscriptCallback.model_validate(
            {
                "original": [{"time_range": [0, 2.5], "text": "Hola grafos"}],
                "english": [
                    {"timestamp": [0, 2.5], "text": "Graphs model relationships"},
                    {"timestamp": [2.5, 5], "text": "between connected nodes"},
                ],
            }
        )

        response = await handler.apply_transcript(video.id, payload)
        await runner.join()

        assert response.accepted == 3
        assert response.dropped == 0
        assert response.indexing_scheduled is True
        stored = await reload(video.id)
        assert [e.text for e in stored.transcript.normalized] == [
            "Graphs model relationships",
            "between connected nodes",
        ]
        assert stored.transcript.original[0].time_range == [0, 2.5]
        points = vector_db.points(settings.vector_db.collections.transcripts)
        assert len(points) == 1
        assert points[0].payload["video_id"] == video.id

    async def test_drops_malformed_entries(self, handler, video, reload):
        payload = TranscriptCallback(
            normalized=[
                {"time_range": [0, 1], "text": "kept"},
                {"time_range": [3, 1], "text": "end before start"},
                {"time_range": [0, 1], "text": "   "},
                {"text": "no time"},
                "not an object",
            ]
        )

        response = await handler.apply_transcript(video.id, payload)

        assert response.accepted == 1
        assert response.dropped == 4
        assert [e.text for e in (await reload(video.id)).transcript.normalized] == [
            "kept"
        ]

    async def test_original_only_does_not_index(self, handler, video, reload):
        payload = TranscriptCallback(original=[{"time_range": [0], "text": "Hola"}])

        response = await handler.apply_transcript(video.id, payload)

        assert response.indexing_scheduled is False
        stored = await reload(video.id)
        assert stored.transcript.original[0].text == "Hola"
        assert stored.transcript.normalized == []

    async def test_redelivery_replaces_track(self, handler, video, reload):
        first = TranscriptCallback(normalized=[{"time_range": [0, 1], "text": "draft"}])
        second = TranscriptCallback(normalized=[{"time_range": [0, 1], "text": "final"}])

        await handler.apply_transcript(video.id, first)
        await handler.apply_transcript(video.id, second)

        assert [e.text for e in (await reload(video.id)).transcript.normalized] == [
            "final"
        ]

    async def test_no_track_rejected(self, handler, video):
        with pytest.raises(InvalidCallbackPayloadException) as exc_info:
            await handler.apply_transcript(video.id, TranscriptCallback())
        assert exc_info.value.artifact == "transcript"

    async def test_unknown_video(self, handler):
        payload = TranscriptCallback(normalized=[{"time_range": [0], "text": "x"}])
        with pytest.raises(VideoNotFoundException):
            await handler.apply_transcript("missing", payload)

    async def test_indexing_disabled(self, document_db, settings, indexer, runner, video):
        settings.indexing.enabled = False
        handler = EnrichmentCallbackHandler(
            document_db, settings, indexer=indexer, runner=runner
        )
        payload = TranscriptCallback(normalized=[{"time_range": [0], "text": "graphs"}])

        response = await handler.apply_transcript(video.id, payload)

        assert response.indexing_scheduled is False
        assert runner.pending == 0

    async def test_latest_delivery_wins_over_slow_indexing(
        self, handler, runner, video, embedder, vector_db, settings, monkeypatch
    ):
        embed_texts = embedder.embed_texts
        calls = 0

        async def slow_first_call(texts):
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(0.2)
            return await embed_texts(texts)

        monkeypatch.setattr(embedder, "embed_texts", slow_first_call)

        await handler.apply_transcript(
            video.id,
            TranscriptCallback(
                normalized=[{"time_range": [0, 1], "text": "first version alpha"}]
            ),
        )
        await handler.apply_transcript(
            video.id,
            TranscriptCallback(
                normalized=[{"time_range": [0, 1], "text": "second version beta"}]
            ),
        )
        await runner.join()

        points = vector_db.points(settings.vector_db.collections.transcripts)
        assert [p.payload["text"] for p in points] == ["second version beta"]

    @pytest.mark.parametrize(
        "normalized",
        [
            [],
            [{"text": "no time"}, "not an object"],
            [{"time_range": [0, 1], "text": "the of and"}],
        ],
        ids=["empty", "all-malformed", "nothing-indexable"],
    )
    async def test_replacement_without_text_clears_index(
        self, handler, runner, video, vector_db, settings, document_db, normalized
    ):
        await handler.apply_transcript(
            video.id,
            TranscriptCallback(normalized=[{"time_range": [0, 1], "text": "hello world"}]),
        )
        await runner.join()
        collection = settings.vector_db.collections.transcripts
        assert len(vector_db.points(collection)) == 1

        response = await handler.apply_transcript(
            video.id, TranscriptCallback(normalized=normalized)
        )
        await runner.join()

        assert response.indexing_scheduled is True
        assert vector_db.points(collection) == []
        assert document_db.collections.get("dead_letters", {}) == {}


# =============================================================================
# Other artifacts
# =============================================================================


class TestSummaryCallback:
    async def test_legacy_field_name(self, handler, video, reload):
        payload = SummaryCallback.model_validate({"Summary_eng": "About graphs"})

        response = await handler.apply_summary(video.id, payload)

        assert response.accepted == 1
        stored = await reload(video.id)
        assert stored.summary.normalized == "About graphs"
        assert stored.summary.original == "NA"

    async def test_empty_rejected(self, handler, video):
        with pytest.raises(InvalidCallbackPayloadException):
            await handler.apply_summary(video.id, SummaryCallback())


class TestKeyConceptsCallback:
    async def test_partial_update(self, handler, video, reload):
        await handler.apply_key_concepts(
            video.id,
            KeyConceptsCallback.model_validate(
                {
                    "concept": "  Graphs ",
                    "secondary": [{"question": "What is a node?", "answers": ["A"]}],
                }
            ),
        )
        await handler.apply_key_concepts(
            video.id, KeyConceptsCallback(description="Graph theory basics")
        )

        concepts = (await reload(video.id)).key_concepts
        assert concepts.primary == "Graphs"
        assert concepts.secondary[0].question == "What is a node?"
        assert concepts.description == "Graph theory basics"

    async def test_empty_rejected(self, handler, video):
        with pytest.raises(InvalidCallbackPayloadException):
            await handler.apply_key_concepts(video.id, KeyConceptsCallback())


class TestQuizItemsCallback:
    async def test_stores_valid_items(self, handler, video, reload):
        payload = QuizItemsCallback.model_validate(
            {
                "Questions": '[{"question": "Define a graph", "answer": "G=(V,E)"}]',
                "mcqs": [
                    {
                        "question": "Edges connect?",
                        "options": ["nodes", "files"],
                        "correctAnswer": "nodes",
                    },
                    {
                        "question": "Bad answer",
                        "options": ["a", "b"],
                        "correct_answer": "c",
                    },
                    {"question": "Too few options", "options": ["a"], "correct_answer": "a"},
                ],
            }
        )

        response = await handler.apply_quiz_items(video.id, payload)

        assert response.accepted == 2
        assert response.dropped == 2
        quiz = (await reload(video.id)).quiz_items
        assert quiz.short_questions[0].answer == "G=(V,E)"
        assert [q.question for q in quiz.mcqs] == ["Edges connect?"]

    async def test_only_delivered_list_is_replaced(self, handler, video, reload):
        await handler.apply_quiz_items(
            video.id,
            QuizItemsCallback(short_questions=[{"question": "Q1"}]),
        )
        await handler.apply_quiz_items(
            video.id,
            QuizItemsCallback(
                mcqs=[{"question": "M1", "options": ["x", "y"], "correct_answer": "y"}]
            ),
        )

        quiz = (await reload(video.id)).quiz_items
        assert [q.question for q in quiz.short_questions] == ["Q1"]
        assert [q.question for q in quiz.mcqs] == ["M1"]

    def test_invalid_json_string_rejected(self):
        with pytest.raises(ValidationError):
            QuizItemsCallback.model_validate({"Questions": "[not json"})


class TestDescriptionCallback:
    async def test_stores_description(self, handler, video, reload):
        await handler.apply_description(
            video.id, DescriptionCallback(description="A lecture on graphs")
        )
        assert (await reload(video.id)).description == "A lecture on graphs"


# =============================================================================
# Shared rules
# =============================================================================


class TestCallbackRules:
    async def test_body_id_must_match_path(self, handler, video):
        payload = SummaryCallback(id="someone-else", normalized="x")
        with pytest.raises(InvalidCallbackPayloadException):
            await handler.apply_summary(video.id, payload)

    async def test_matching_body_id_accepted(self, handler, video):
        payload = SummaryCallback(id=video.id, normalized="x")
        response = await handler.apply_summary(video.id, payload)
        assert response.video_id == video.id

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            SummaryCallback.model_validate({"normalized": "x", "unexpected": 1})

    def test_unsupported_version_rejected(self):
        with pytest.raises(ValidationError):
            DescriptionCallback.model_validate({"version": 2, "description": "x"})

    async def test_callbacks_leave_dispatch_state_alone(self, handler, video, reload):
        await handler.apply_description(video.id, DescriptionCallback(description="d"))
        assert (await reload(video.id)).dispatch_state == DispatchState.ACKNOWLEDGED

    async def test_storage_failure(self, handler, video, document_db):
        document_db.fail_with = DocumentDBError("update", "down")
        with pytest.raises(StorageException):
            await handler.apply_description(video.id, DescriptionCallback(description="d"))
