"""Question schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class QuestionBase(BaseModel):
    """Base question schema."""

    content: str = Field(..., min_length=1)
    is_open: bool = True
    organization_id: UUID | None = None


class QuestionCreate(QuestionBase):
    """Schema for submitting a question.

    With `check_duplicates`, similar questions stop the insert and are
    returned instead.
    """

    check_duplicates: bool = True


class SimilarCheckRequest(QuestionBase):
    """Schema for checking a draft question for duplicates."""

    pass


class QuestionRead(BaseModel):
    """Schema for reading a question."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    is_open: bool
    organization_id: UUID | None
    created_by: UUID | None
    category: str | None
    elo_score: float
    created_at: datetime
    updated_at: datetime


class SimilarQuestionRead(BaseModel):
    """A similar question with its similarity score."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    similarity: float
    is_public: bool


class QuestionSubmitResponse(BaseModel):
    """Result of a submission: the new question, or its near-duplicates."""

    created: bool
    question: QuestionRead | None = None
    similar: list[SimilarQuestionRead] = []
