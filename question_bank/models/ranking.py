"""Ranking records: per-organization ranking state of questions and responses."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from question_bank.database import Base


class OrganizationQuestionRanking(Base):
    """Ranking state of a question inside an organization."""

    __tablename__ = "organization_question_rankings"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "question_id",
            name="uq_org_question_rankings_org_question",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    organization_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    elo_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=1500.0,
        server_default="1500",
    )
    manual_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    kanban_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    kanban_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class ResponseRanking(Base):
    """Ranking state of a response inside an organization."""

    __tablename__ = "response_rankings"
    __table_args__ = (
        UniqueConstraint(
            "response_id",
            "organization_id",
            name="uq_response_rankings_response_org",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    response_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("responses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Denormalized so a question's responses can be ranked without a join
    question_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    elo_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=1500.0,
        server_default="1500",
    )
    manual_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    kanban_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    kanban_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
