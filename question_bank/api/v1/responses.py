"""Organization-scoped response ranking endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.core.errors import QuestionBankError
from question_bank.core.ranking.session import SessionMode
from question_bank.api.v1.organizations import board_read, move_read
from question_bank.deps import Admin, DbSession, Member, http_error
from question_bank.schemas.kanban import (
    KanbanBoardRead,
    KanbanMoveResponse,
    ResponseKanbanMoveRequest,
)
from question_bank.schemas.ranking import ManualRankResult, RankableItemRead, RankingOrder
from question_bank.services import kanban as kanban_service
from question_bank.services.candidates import question_responses_loader
from question_bank.services.question import question_service
from question_bank.services.rank_store import ResponseRankStore
from question_bank.services.ranking import present, submit_order

router = APIRouter()


async def _require_organization_question(
    db: AsyncSession,
    organization_id: UUID,
    question_id: UUID,
) -> None:
    """404 unless the question is owned by or linked to the organization."""
    if not await question_service.in_organization(db, organization_id, question_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found",
        )


@router.get(
    "/{organization_id}/questions/{question_id}/responses/manual",
    response_model=list[RankableItemRead],
)
async def get_response_ranking(
    organization_id: UUID,
    question_id: UUID,
    membership: Member,
    db: DbSession,
) -> list:
    """A question's responses by the organization's manual rank."""
    await _require_organization_question(db, organization_id, question_id)

    try:
        return await present(
            question_responses_loader(db, organization_id, question_id),
            ResponseRankStore(db),
            organization_id,
        )
    except QuestionBankError as e:
        raise http_error(e)


@router.put(
    "/{organization_id}/questions/{question_id}/responses/manual",
    response_model=ManualRankResult,
)
async def set_response_ranking(
    organization_id: UUID,
    question_id: UUID,
    data: RankingOrder,
    membership: Admin,
    db: DbSession,
) -> ManualRankResult:
    """Replace the manual ranking of a question's responses."""
    await _require_organization_question(db, organization_id, question_id)

    try:
        ranks = await submit_order(
            question_responses_loader(db, organization_id, question_id),
            ResponseRankStore(db),
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


@router.get("/{organization_id}/responses/kanban", response_model=KanbanBoardRead)
async def get_response_board(
    organization_id: UUID,
    membership: Member,
    db: DbSession,
    question_id: UUID | None = None,
) -> KanbanBoardRead:
    """Response board, for one question or all the organization's questions."""
    if question_id is not None:
        await _require_organization_question(db, organization_id, question_id)

    try:
        board = await kanban_service.load_response_board(db, organization_id, question_id)
    except QuestionBankError as e:
        raise http_error(e)
    return board_read(board)


@router.post("/{organization_id}/responses/kanban/move", response_model=KanbanMoveResponse)
async def move_response_card(
    organization_id: UUID,
    data: ResponseKanbanMoveRequest,
    membership: Admin,
    db: DbSession,
) -> KanbanMoveResponse:
    """Move a response card and reindex the touched columns."""
    if data.question_id is not None:
        await _require_organization_question(db, organization_id, data.question_id)

    try:
        updates = await kanban_service.move_response(
            db,
            organization_id,
            data.item_id,
            data.source_column,
            data.dest_column,
            data.dest_index,
            question_id=data.question_id,
        )
    except QuestionBankError as e:
        raise http_error(e)
    return move_read(updates)
