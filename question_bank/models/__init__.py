"""SQLAlchemy models package."""

from question_bank.models.user import User
from question_bank.models.organization import (
    MemberRole,
    Organization,
    OrganizationUser,
    SubscriptionStatus,
    organization_questions,
)
from question_bank.models.question import Question
from question_bank.models.response import Response, ResponseType
from question_bank.models.ranking import OrganizationQuestionRanking, ResponseRanking

__all__ = [
    "User",
    "MemberRole",
    "Organization",
    "OrganizationUser",
    "SubscriptionStatus",
    "organization_questions",
    "Question",
    "Response",
    "ResponseType",
    "OrganizationQuestionRanking",
    "ResponseRanking",
]
