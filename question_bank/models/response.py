"""Response model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from question_bank.database import Base

if TYPE_CHECKING:
    from question_bank.models.question import Question


class ResponseType(str, Enum):
    """Kind of response given to a question."""

    ANSWER = "answer"
    PARTIAL_ANSWER = "partial_answer"
    WAY_OF_ANSWERING = "way_of_answering"
    OTHER = "other"


class Response(Base):
    """Response to a question."""

    __tablename__ = "responses"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    question_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    response_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=ResponseType.OTHER.value,
    )
    created_by: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    # Relationships
    question: Mapped["Question"] = relationship("Question", back_populates="responses")
