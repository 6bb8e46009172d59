"""Embedding endpoint."""

from fastapi import APIRouter

from question_bank.core.errors import EmbeddingProviderError
from question_bank.deps import CurrentUser, http_error
from question_bank.schemas.embedding import EmbeddingRequest, EmbeddingResponse
from question_bank.services.embedding import embedding_service

router = APIRouter()


@router.post("", response_model=EmbeddingResponse)
async def create_embedding(data: EmbeddingRequest, user: CurrentUser) -> EmbeddingResponse:
    """Embed and categorise a question text."""
    try:
        embedded = await embedding_service.embed_question(data.question)
    except EmbeddingProviderError as e:
        raise http_error(e)

    return EmbeddingResponse(embedding=embedded.embedding, category=embedded.category)
