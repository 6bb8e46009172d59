"""Organization (paid group tier) and membership models."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from question_bank.database import Base

if TYPE_CHECKING:
    from question_bank.models.question import Question
    from question_bank.models.user import User


class SubscriptionStatus(str, Enum):
    """Stripe subscription status values mirrored on an organization."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"
    PAUSED = "paused"


class MemberRole(str, Enum):
    """Role of a user inside an organization."""

    ADMIN = "admin"
    MEMBER = "member"


# Indirect question association: a public question pulled into an organization
organization_questions = Table(
    "organization_questions",
    Base.metadata,
    Column(
        "organization_id",
        PGUUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "question_id",
        PGUUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "created_at",
        DateTime(timezone=True),
        server_default=func.now(),
    ),
)


class Organization(Base):
    """Organization is a subscription-gated group with its own ranking scope."""

    __tablename__ = "organizations"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subscription_status: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        index=True,
    )
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
    members: Mapped[list["OrganizationUser"]] = relationship(
        "OrganizationUser",
        back_populates="organization",
        cascade="all, delete-orphan",
    )
    linked_questions: Mapped[list["Question"]] = relationship(
        "Question",
        secondary="organization_questions",
        back_populates="linked_organizations",
    )

    @property
    def is_active(self) -> bool:
        """Check if the organization's subscription grants access."""
        return self.subscription_status == SubscriptionStatus.ACTIVE.value


class OrganizationUser(Base):
    """Membership of a user in an organization."""

    __tablename__ = "organization_users"
    __table_args__ = (
        UniqueConstraint(
            "organization_id", "user_id", name="uq_organization_users_org_user"
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
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=MemberRole.MEMBER.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    # Relationships
    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="members"
    )
    user: Mapped["User"] = relationship("User", back_populates="memberships")

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN.value
