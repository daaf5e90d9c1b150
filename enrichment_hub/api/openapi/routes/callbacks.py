"""Callback endpoints the enrichment worker posts artifacts to."""

from fastapi import APIRouter

from enrichment_hub.api.dependencies import CallbackHandlerDep
from enrichment_hub.application.dtos.callbacks import (
    CallbackResponse,
    DescriptionCallback,
    KeyConceptsCallback,
    QuizItemsCallback,
    SummaryCallback,
    TranscriptCallback,
)

router = APIRouter(prefix="/videos/{video_id}")

_ERRORS = {
    404: {"description": "Unknown video"},
    422: {"description": "Payload does not match the callback contract"},
}


@router.post(
    "/transcript",
    response_model=CallbackResponse,
    summary="Deliver transcript",
    description=(
        "Store transcript tracks. A non-empty normalized track schedules "
        "indexing for semantic search."
    ),
    responses=_ERRORS,
)
async def post_transcript(
    video_id: str,
    payload: TranscriptCallback,
    handler: CallbackHandlerDep,
) -> CallbackResponse:
    return await handler.apply_transcript(video_id, payload)


@router.post(
    "/summary",
    response_model=CallbackResponse,
    summary="Deliver summary",
    responses=_ERRORS,
)
async def post_summary(
    video_id: str,
    payload: SummaryCallback,
    handler: CallbackHandlerDep,
) -> CallbackResponse:
    return await handler.apply_summary(video_id, payload)


@router.post(
    "/keyconcepts",
    response_model=CallbackResponse,
    summary="Deliver key concepts",
    responses=_ERRORS,
)
async def post_key_concepts(
    video_id: str,
    payload: KeyConceptsCallback,
    handler: CallbackHandlerDep,
) -> CallbackResponse:
    return await handler.apply_key_concepts(video_id, payload)


@router.post(
    "/qnas",
    response_model=CallbackResponse,
    summary="Deliver quiz items",
    responses=_ERRORS,
)
async def post_quiz_items(
    video_id: str,
    payload: QuizItemsCallback,
    handler: CallbackHandlerDep,
) -> CallbackResponse:
    return await handler.apply_quiz_items(video_id, payload)


@router.post(
    "/description",
    response_model=CallbackResponse,
    summary="Deliver description",
    responses=_ERRORS,
)
async def post_description(
    video_id: str,
    payload: DescriptionCallback,
    handler: CallbackHandlerDep,
) -> CallbackResponse:
    return await handler.apply_description(video_id, payload)
