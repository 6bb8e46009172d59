"""Question model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from question_bank.database import Base

if TYPE_CHECKING:
    from question_bank.models.organization import Organization
    from question_bank.models.response import Response


class Question(Base):
    """Question submitted to the public pool or privately to an organization."""

    __tablename__ = "questions"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Direct ownership; NULL for the public pool
    organization_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    category: Mapped[str | None] = mapped_column(String(100))

    # Global-scope Elo rating
    elo_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=1500.0,
        server_default="1500",
    )

    # Vector store reference, set once the embedding is indexed
    qdrant_id: Mapped[str | None] = mapped_column(String(100), index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    responses: Mapped[list["Response"]] = relationship(
        "Response",
        back_populates="question",
        cascade="all, delete-orphan",
    )
    linked_organizations: Mapped[list["Organization"]] = relationship(
        "Organization",
        secondary="organization_questions",
        back_populates="linked_questions",
    )
