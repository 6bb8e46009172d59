"""Question submission, similarity lookup and organization association."""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.core.errors import VisibilityError
from question_bank.models.organization import OrganizationUser, organization_questions
from question_bank.models.question import Question
from question_bank.models.response import Response, ResponseType
from question_bank.models.user import User
from question_bank.services.candidates import organization_question_filter
from question_bank.services.dedup import (
    DeduplicationMatcher,
    SimilarityCandidate,
    Visibility,
    dedup_matcher,
)
from question_bank.services.embedding import EmbeddingService, embedding_service

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class SimilarQuestion:
    """A similarity candidate with its text, ready for display."""

    id: UUID
    content: str
    similarity: float
    is_public: bool


@dataclass
class SubmissionResult:
    """Outcome of a submission attempt."""

    question: Question | None = None
    similar: list[SimilarQuestion] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.question is not None


class QuestionService:
    """Submission flow: validate, embed, check duplicates, insert."""

    def __init__(
        self,
        embedder: EmbeddingService | None = None,
        matcher: DeduplicationMatcher | None = None,
    ) -> None:
        self.embedder = embedder or embedding_service
        self.matcher = matcher or dedup_matcher

    async def resolve_visibility(
        self,
        db: AsyncSession,
        user: User,
        is_open: bool,
        organization_id: UUID | None = None,
    ) -> Visibility:
        """Work out who a new question will be visible to.

        Private questions belong to the requested organization, or to the
        user's first organization when none is given.
        """
        if is_open:
            return Visibility()

        query = select(OrganizationUser.organization_id).where(
            OrganizationUser.user_id == user.id
        )
        if organization_id is not None:
            query = query.where(OrganizationUser.organization_id == organization_id)

        result = await db.execute(query.order_by(OrganizationUser.created_at).limit(1))
        org_id = result.scalar_one_or_none()
        if org_id is None:
            raise VisibilityError("You are not associated with any organization")
        return Visibility(organization_id=org_id)

    async def can_view(self, db: AsyncSession, user: User, question: Question) -> bool:
        """Public questions are visible to everyone; private ones to the
        members of an organization that owns or has linked them."""
        if question.is_open:
            return True

        linked = select(organization_questions.c.organization_id).where(
            organization_questions.c.question_id == question.id
        )
        query = select(OrganizationUser.id).where(OrganizationUser.user_id == user.id)
        if question.organization_id is not None:
            query = query.where(
                (OrganizationUser.organization_id == question.organization_id)
                | OrganizationUser.organization_id.in_(linked)
            )
        else:
            query = query.where(OrganizationUser.organization_id.in_(linked))

        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def in_organization(
        self,
        db: AsyncSession,
        organization_id: UUID,
        question_id: UUID,
    ) -> bool:
        """Whether a question is owned by or linked to an organization."""
        result = await db.execute(
            select(Question.id).where(
                Question.id == question_id,
                organization_question_filter(organization_id),
            )
        )
        return result.scalar_one_or_none() is not None

    async def _hydrate(
        self,
        db: AsyncSession,
        candidates: list[SimilarityCandidate],
    ) -> list[SimilarQuestion]:
        """Attach question text, keeping candidate order."""
        if not candidates:
            return []

        result = await db.execute(
            select(Question.id, Question.content).where(
                Question.id.in_([c.item_id for c in candidates])
            )
        )
        contents = {row[0]: row[1] for row in result.all()}
        return [
            SimilarQuestion(
                id=c.item_id,
                content=contents[c.item_id],
                similarity=c.similarity_score,
                is_public=c.is_public,
            )
            for c in candidates
            if c.item_id in contents  # index may lag deletions
        ]

    async def find_similar_to_text(
        self,
        db: AsyncSession,
        content: str,
        visibility: Visibility,
        threshold: float | None = None,
    ) -> list[SimilarQuestion]:
        """Embed a draft question and return visible near-duplicates."""
        embedded = await self.embedder.embed_question(content)
        candidates = await self.matcher.find_similar(
            db,
            embedded.embedding,
            visibility,
            threshold=settings.dedup_submit_threshold if threshold is None else threshold,
        )
        return await self._hydrate(db, candidates)

    async def find_similar_to_question(
        self,
        db: AsyncSession,
        question: Question,
        threshold: float | None = None,
    ) -> list[SimilarQuestion]:
        """Similar questions for a question detail view, within its own scope."""
        embedding = await self.embedder.embed_text(question.content)
        visibility = Visibility(
            organization_id=None if question.is_open else question.organization_id
        )
        candidates = await self.matcher.find_similar(
            db,
            embedding,
            visibility,
            threshold=settings.dedup_detail_threshold if threshold is None else threshold,
            exclude_id=question.id,
        )
        return await self._hydrate(db, candidates)

    async def submit(
        self,
        db: AsyncSession,
        user: User,
        content: str,
        is_open: bool = True,
        organization_id: UUID | None = None,
        check_duplicates: bool = True,
    ) -> SubmissionResult:
        """
        Submit a new question.

        The embedding is computed before anything is written; a provider
        failure aborts the submission. With `check_duplicates`, visible
        near-duplicates stop the insert and are returned instead so the
        caller can pick one or resubmit without the check.
        """
        content = content.strip()
        if not content:
            raise ValueError("Question content is required")

        visibility = await self.resolve_visibility(db, user, is_open, organization_id)
        embedded = await self.embedder.embed_question(content)

        if check_duplicates:
            candidates = await self.matcher.find_similar(
                db,
                embedded.embedding,
                visibility,
                threshold=settings.dedup_submit_threshold,
            )
            if candidates:
                logger.info(f"Submission held back: {len(candidates)} similar questions")
                return SubmissionResult(similar=await self._hydrate(db, candidates))

        question = Question(
            content=content,
            is_open=is_open,
            organization_id=visibility.organization_id,
            created_by=user.id,
            category=embedded.category,
        )
        db.add(question)
        await db.commit()
        await db.refresh(question)

        logger.info(f"Question {question.id} submitted (public={is_open})")
        return SubmissionResult(question=question)

    async def add_response(
        self,
        db: AsyncSession,
        user: User,
        question: Question,
        content: str,
        response_type: ResponseType = ResponseType.OTHER,
        url: str | None = None,
    ) -> Response:
        """Record a response to a question the caller can see."""
        content = content.strip()
        if not content:
            raise ValueError("Response content is required")

        response = Response(
            question_id=question.id,
            content=content,
            url=(url or "").strip() or None,
            response_type=ResponseType(response_type).value,
            created_by=user.id,
        )
        db.add(response)
        await db.commit()
        await db.refresh(response)

        logger.info(f"Response {response.id} added to question {question.id} ({response.response_type})")
        return response

    async def add_to_organization(
        self,
        db: AsyncSession,
        organization_id: UUID,
        question_id: UUID,
    ) -> bool:
        """Link an existing question to an organization.

        Returns False when it was already linked.
        """
        stmt = (
            insert(organization_questions)
            .values(organization_id=organization_id, question_id=question_id)
            .on_conflict_do_nothing(index_elements=["organization_id", "question_id"])
        )
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount > 0

    async def remove_from_organization(
        self,
        db: AsyncSession,
        organization_id: UUID,
        question_id: UUID,
    ) -> bool:
        """Unlink a question from an organization. Returns False if it was not linked."""
        result = await db.execute(
            delete(organization_questions).where(
                organization_questions.c.organization_id == organization_id,
                organization_questions.c.question_id == question_id,
            )
        )
        await db.commit()
        return result.rowcount > 0


# Global instance
question_service = QuestionService()
