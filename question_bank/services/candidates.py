"""Candidate loaders feeding ranking sessions."""

import random
from typing import Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.core.errors import CandidateFetchError
from question_bank.core.ranking.sequencer import initial_order
from question_bank.core.ranking.session import CandidateLoader, RankableItem
from question_bank.models.organization import organization_questions
from question_bank.models.question import Question
from question_bank.models.ranking import OrganizationQuestionRanking, ResponseRanking
from question_bank.models.response import Response

settings = get_settings()


def _question_item(question: Question, scope_id: UUID | None, manual_rank: int | None = None) -> RankableItem:
    return RankableItem(
        id=question.id,
        content=question.content,
        scope_id=scope_id,
        category=question.category,
        created_at=question.created_at,
        manual_rank=manual_rank,
    )


def _sample(items: list, size: int, rng: random.Random | None = None) -> list:
    """Shuffle a fetched pool and keep the first `size` items."""
    pool = list(items)
    (rng or random).shuffle(pool)
    return pool[:size]


def organization_question_filter(organization_id: UUID):
    """WHERE clause matching questions owned by or linked to an organization."""
    linked = select(organization_questions.c.question_id).where(
        organization_questions.c.organization_id == organization_id
    )
    return or_(
        Question.organization_id == organization_id,
        Question.id.in_(linked),
    )


async def _fetch(db: AsyncSession, query) -> list:
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise CandidateFetchError(f"Could not fetch ranking candidates: {e}") from e
    return list(result.all())


def global_sample_loader(
    db: AsyncSession,
    pool_size: int | None = None,
    sample_size: int | None = None,
    rng: random.Random | None = None,
) -> CandidateLoader:
    """Random sample from the public pool."""
    pool_size = pool_size or settings.ranking_pool_size
    sample_size = sample_size or settings.ranking_sample_size

    async def load() -> list[RankableItem]:
        rows = await _fetch(
            db,
            select(Question)
            .where(Question.is_open.is_(True), Question.organization_id.is_(None))
            .limit(pool_size),
        )
        return [_question_item(row[0], None) for row in _sample(rows, sample_size, rng)]

    return load


def organization_sample_loader(
    db: AsyncSession,
    organization_id: UUID,
    pool_size: int | None = None,
    sample_size: int | None = None,
    rng: random.Random | None = None,
) -> CandidateLoader:
    """Random sample from an organization's questions."""
    pool_size = pool_size or settings.ranking_pool_size
    sample_size = sample_size or settings.ranking_sample_size

    async def load() -> list[RankableItem]:
        rows = await _fetch(
            db,
            select(Question)
            .where(organization_question_filter(organization_id))
            .limit(pool_size),
        )
        return [
            _question_item(row[0], organization_id)
            for row in _sample(rows, sample_size, rng)
        ]

    return load


def selected_questions_loader(
    db: AsyncSession,
    question_ids: Sequence[UUID],
    organization_id: UUID | None = None,
) -> CandidateLoader:
    """Load exactly the given questions, all of which must be in scope."""

    async def load() -> list[RankableItem]:
        query = select(Question).where(Question.id.in_(list(question_ids)))
        if organization_id is None:
            query = query.where(Question.is_open.is_(True), Question.organization_id.is_(None))
        else:
            query = query.where(organization_question_filter(organization_id))

        rows = await _fetch(db, query)
        by_id = {row[0].id: row[0] for row in rows}
        missing = [qid for qid in question_ids if qid not in by_id]
        if missing:
            raise CandidateFetchError(
                f"Questions not available in this scope: {', '.join(map(str, missing))}"
            )
        return [_question_item(by_id[qid], organization_id) for qid in question_ids]

    return load


def organization_questions_loader(db: AsyncSession, organization_id: UUID) -> CandidateLoader:
    """Every question of an organization, by manual rank with unranked last."""

    async def load() -> list[RankableItem]:
        rows = await _fetch(
            db,
            select(Question, OrganizationQuestionRanking.manual_rank)
            .outerjoin(
                OrganizationQuestionRanking,
                (OrganizationQuestionRanking.question_id == Question.id)
                & (OrganizationQuestionRanking.organization_id == organization_id),
            )
            .where(organization_question_filter(organization_id))
            .order_by(Question.created_at),
        )
        items = [_question_item(question, organization_id, rank) for question, rank in rows]
        return initial_order(items, lambda item: item.manual_rank)

    return load


def question_responses_loader(
    db: AsyncSession,
    organization_id: UUID,
    question_id: UUID,
) -> CandidateLoader:
    """Every response to a question, by the organization's manual rank."""

    async def load() -> list[RankableItem]:
        rows = await _fetch(
            db,
            select(Response, ResponseRanking.manual_rank)
            .outerjoin(
                ResponseRanking,
                (ResponseRanking.response_id == Response.id)
                & (ResponseRanking.organization_id == organization_id),
            )
            .join(Question, Question.id == Response.question_id)
            .where(
                Response.question_id == question_id,
                organization_question_filter(organization_id),
            )
            .order_by(Response.created_at),
        )
        items = [
            RankableItem(
                id=response.id,
                content=response.content,
                scope_id=organization_id,
                category=response.response_type,
                created_at=response.created_at,
                manual_rank=rank,
            )
            for response, rank in rows
        ]
        return initial_order(items, lambda item: item.manual_rank)

    return load
