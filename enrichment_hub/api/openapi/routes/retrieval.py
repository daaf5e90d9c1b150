"""Semantic search endpoint."""

from fastapi import APIRouter

from enrichment_hub.api.dependencies import RetrieverDep
from enrichment_hub.application.dtos.retrieval import (
    MatchDTO,
    QueryRequest,
    QueryResponse,
)

router = APIRouter()


@router.post(
    "/query",
    response_model=QueryResponse,
    summary="Search transcripts",
    description=(
        "Return the transcript passages most similar to a free-text query, "
        "best first. Passages below the similarity threshold are omitted."
    ),
    responses={502: {"description": "Embedding service or vector store failed"}},
)
async def query_transcripts(
    request: QueryRequest,
    retriever: RetrieverDep,
) -> QueryResponse:
    scope = request.scope or retriever.default_scope
    filters = {"video_id": request.video_id} if request.video_id else None

    matches = await retriever.query(
        request.query,
        scope=scope,
        top_k=request.top_k,
        threshold=request.threshold,
        filters=filters,
    )
    return QueryResponse(
        query=request.query,
        scope=scope,
        matches=[MatchDTO(**match.model_dump()) for match in matches],
    )
