"""Organization-scoped question ranking, kanban and association endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from question_bank.core.errors import QuestionBankError
from question_bank.core.ranking.session import SessionMode
from question_bank.deps import Admin, DbSession, Member, http_error
from question_bank.models.question import Question
from question_bank.schemas.kanban import (
    KanbanBoardRead,
    KanbanCardRead,
    KanbanMoveRequest,
    KanbanMoveResponse,
    KanbanUpdateRead,
)
from question_bank.schemas.ranking import (
    EloResult,
    ManualRankResult,
    RankableItemRead,
    RankingOrder,
)
from question_bank.services import kanban as kanban_service
from question_bank.services.candidates import (
    organization_questions_loader,
    organization_sample_loader,
    selected_questions_loader,
)
from question_bank.services.question import question_service
from question_bank.services.rank_store import QuestionRankStore
from question_bank.services.ranking import present, submit_order

router = APIRouter()
logger = logging.getLogger(__name__)


def board_read(board: kanban_service.Board) -> KanbanBoardRead:
    return KanbanBoardRead(
        column_order=list(board.layout.columns),
        columns={
            column: [KanbanCardRead.model_validate(card) for card in cards]
            for column, cards in board.as_columns().items()
        },
    )


def move_read(updates: list) -> KanbanMoveResponse:
    return KanbanMoveResponse(
        updates=[KanbanUpdateRead.model_validate(update) for update in updates]
    )


@router.get("/{organization_id}/rankings/sample", response_model=list[RankableItemRead])
async def sample_organization_questions(
    organization_id: UUID,
    membership: Member,
    db: DbSession,
) -> list:
    """A random handful of the organization's questions to rank."""
    try:
        return await present(
            organization_sample_loader(db, organization_id),
            QuestionRankStore(db),
            organization_id,
        )
    except QuestionBankError as e:
        raise http_error(e)


@router.post("/{organization_id}/rankings/elo", response_model=EloResult)
async def submit_organization_elo(
    organization_id: UUID,
    data: RankingOrder,
    membership: Member,
    db: DbSession,
) -> EloResult:
    """Record a best-first order as pairwise Elo outcomes within the organization."""
    try:
        scores = await submit_order(
            selected_questions_loader(db, data.ordered_ids, organization_id),
            QuestionRankStore(db),
            SessionMode.ELO,
            data.ordered_ids,
            organization_id,
        )
    except QuestionBankError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return EloResult(scores=scores)


@router.get("/{organization_id}/rankings/manual", response_model=list[RankableItemRead])
async def get_manual_ranking(
    organization_id: UUID,
    membership: Member,
    db: DbSession,
) -> list:
    """Every organization question by manual rank, unranked last."""
    try:
        return await present(
            organization_questions_loader(db, organization_id),
            QuestionRankStore(db),
            organization_id,
        )
    except QuestionBankError as e:
        raise http_error(e)


@router.put("/{organization_id}/rankings/manual", response_model=ManualRankResult)
async def set_manual_ranking(
    organization_id: UUID,
    data: RankingOrder,
    membership: Admin,
    db: DbSession,
) -> ManualRankResult:
    """Replace the organization's manual ranking with a full order."""
    try:
        ranks = await submit_order(
            organization_questions_loader(db, organization_id),
            QuestionRankStore(db),
            SessionMode.MANUAL,
            data.ordered_ids,
            organization_id,
        )
    except QuestionBankError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return ManualRankResult(ranks=ranks)


@router.get("/{organization_id}/kanban", response_model=KanbanBoardRead)
async def get_question_board(
    organization_id: UUID,
    membership: Member,
    db: DbSession,
) -> KanbanBoardRead:
    """The organization's question board."""
    try:
        board = await kanban_service.load_question_board(db, organization_id)
    except QuestionBankError as e:
        raise http_error(e)
    return board_read(board)


@router.post("/{organization_id}/kanban/move", response_model=KanbanMoveResponse)
async def move_question_card(
    organization_id: UUID,
    data: KanbanMoveRequest,
    membership: Admin,
    db: DbSession,
) -> KanbanMoveResponse:
    """Move a question card and reindex the touched columns."""
    try:
        updates = await kanban_service.move_question(
            db,
            organization_id,
            data.item_id,
            data.source_column,
            data.dest_column,
            data.dest_index,
        )
    except QuestionBankError as e:
        raise http_error(e)
    return move_read(updates)


@router.post("/{organization_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_question(
    organization_id: UUID,
    question_id: UUID,
    membership: Member,
    db: DbSession,
) -> None:
    """Bring an existing public question into the organization."""
    question = await db.get(Question, question_id)
    if not question or not (question.is_open or question.organization_id == organization_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found",
        )

    if await question_service.add_to_organization(db, organization_id, question_id):
        logger.info(f"Question {question_id} linked to organization {organization_id}")


@router.delete("/{organization_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_question(
    organization_id: UUID,
    question_id: UUID,
    membership: Admin,
    db: DbSession,
) -> None:
    """Unlink a question from the organization."""
    if not await question_service.remove_from_organization(db, organization_id, question_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question is not linked to this organization",
        )
