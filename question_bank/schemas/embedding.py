"""Embedding schemas."""

from pydantic import BaseModel, Field


class EmbeddingRequest(BaseModel):
    """Question text to embed."""

    question: str = Field(..., min_length=1)


class EmbeddingResponse(BaseModel):
    """Embedding vector plus the question's category."""

    embedding: list[float]
    category: str | None = None
