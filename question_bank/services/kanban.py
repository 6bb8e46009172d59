"""Kanban boards for an organization's questions and responses."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.core.errors import CandidateFetchError
from question_bank.core.ranking.kanban import (
    QUESTION_BOARD,
    RESPONSE_BOARD,
    KanbanBoard,
    KanbanUpdate,
    group_by_status,
    move,
)
from question_bank.models.question import Question
from question_bank.models.ranking import OrganizationQuestionRanking, ResponseRanking
from question_bank.models.response import Response
from question_bank.services.candidates import organization_question_filter
from question_bank.services.rank_store import QuestionRankStore, RankStore, ResponseRankStore

logger = logging.getLogger(__name__)


@dataclass
class KanbanCard:
    """A card as shown on a board."""

    id: UUID
    content: str
    question_id: UUID | None = None
    category: str | None = None
    elo_score: float | None = None
    manual_rank: int | None = None


@dataclass
class Board:
    """Ordered column contents plus the cards they reference."""

    layout: KanbanBoard
    columns: dict[str, list[UUID]]
    cards: dict[UUID, KanbanCard]

    def as_columns(self) -> dict[str, list[KanbanCard]]:
        return {
            column: [self.cards[item_id] for item_id in item_ids]
            for column, item_ids in self.columns.items()
        }


async def _rows(db: AsyncSession, query) -> list:
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise CandidateFetchError(f"Could not load kanban board: {e}") from e
    return list(result.all())


async def load_question_board(db: AsyncSession, organization_id: UUID) -> Board:
    """Board of every question owned by or linked to an organization."""
    rows = await _rows(
        db,
        select(Question, OrganizationQuestionRanking)
        .outerjoin(
            OrganizationQuestionRanking,
            (OrganizationQuestionRanking.question_id == Question.id)
            & (OrganizationQuestionRanking.organization_id == organization_id),
        )
        .where(organization_question_filter(organization_id))
        .order_by(Question.created_at),
    )

    cards: dict[UUID, KanbanCard] = {}
    placements = []
    for question, ranking in rows:
        cards[question.id] = KanbanCard(
            id=question.id,
            content=question.content,
            question_id=question.id,
            category=question.category,
            elo_score=ranking.elo_score if ranking else None,
            manual_rank=ranking.manual_rank if ranking else None,
        )
        placements.append((
            question.id,
            ranking.kanban_status if ranking else None,
            ranking.kanban_order if ranking else None,
        ))

    return Board(
        layout=QUESTION_BOARD,
        columns=group_by_status(placements, QUESTION_BOARD),
        cards=cards,
    )


async def load_response_board(
    db: AsyncSession,
    organization_id: UUID,
    question_id: UUID | None = None,
) -> Board:
    """Board of responses, for one question or for all of an organization's questions."""
    query = (
        select(Response, ResponseRanking)
        .outerjoin(
            ResponseRanking,
            (ResponseRanking.response_id == Response.id)
            & (ResponseRanking.organization_id == organization_id),
        )
        .order_by(Response.created_at)
    )
    org_question_ids = select(Question.id).where(organization_question_filter(organization_id))
    query = query.where(Response.question_id.in_(org_question_ids))
    if question_id is not None:
        query = query.where(Response.question_id == question_id)

    rows = await _rows(db, query)

    cards: dict[UUID, KanbanCard] = {}
    placements = []
    for response, ranking in rows:
        cards[response.id] = KanbanCard(
            id=response.id,
            content=response.content,
            question_id=response.question_id,
            category=response.response_type,
            elo_score=ranking.elo_score if ranking else None,
            manual_rank=ranking.manual_rank if ranking else None,
        )
        placements.append((
            response.id,
            ranking.kanban_status if ranking else None,
            ranking.kanban_order if ranking else None,
        ))

    return Board(
        layout=RESPONSE_BOARD,
        columns=group_by_status(placements, RESPONSE_BOARD),
        cards=cards,
    )


async def _move(
    store: RankStore,
    board: Board,
    organization_id: UUID,
    item_id: UUID,
    source_column: str,
    dest_column: str,
    dest_index: int,
) -> list[KanbanUpdate]:
    updates = move(item_id, source_column, dest_column, dest_index, board.columns)
    await store.set_kanban(organization_id, updates)
    logger.info(
        f"Kanban move in {organization_id}: {item_id} {source_column} -> "
        f"{dest_column}[{dest_index}], {len(updates)} cards reindexed"
    )
    return updates


async def move_question(
    db: AsyncSession,
    organization_id: UUID,
    item_id: UUID,
    source_column: str,
    dest_column: str,
    dest_index: int,
) -> list[KanbanUpdate]:
    """Move a question card against the stored board state."""
    board = await load_question_board(db, organization_id)
    return await _move(
        QuestionRankStore(db), board, organization_id,
        item_id, source_column, dest_column, dest_index,
    )


async def move_response(
    db: AsyncSession,
    organization_id: UUID,
    item_id: UUID,
    source_column: str,
    dest_column: str,
    dest_index: int,
    question_id: UUID | None = None,
) -> list[KanbanUpdate]:
    """Move a response card against the stored board state."""
    board = await load_response_board(db, organization_id, question_id)
    return await _move(
        ResponseRankStore(db), board, organization_id,
        item_id, source_column, dest_column, dest_index,
    )
