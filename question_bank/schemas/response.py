"""Response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from question_bank.models.response import ResponseType


class ResponseCreate(BaseModel):
    """Schema for answering a question."""

    content: str = Field(..., min_length=1)
    response_type: ResponseType = ResponseType.OTHER
    url: str | None = Field(default=None, max_length=2048)


class ResponseRead(BaseModel):
    """Schema for reading a response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    question_id: UUID
    content: str
    url: str | None
    response_type: ResponseType
    created_by: UUID | None
    created_at: datetime
