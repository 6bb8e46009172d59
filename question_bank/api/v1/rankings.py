"""Global (public pool) question ranking endpoints."""

from fastapi import APIRouter, HTTPException, status

from question_bank.core.errors import QuestionBankError
from question_bank.core.ranking.session import SessionMode
from question_bank.deps import CurrentUser, DbSession, http_error
from question_bank.schemas.ranking import EloResult, RankableItemRead, RankingOrder
from question_bank.services.candidates import global_sample_loader, selected_questions_loader
from question_bank.services.rank_store import QuestionRankStore
from question_bank.services.ranking import present, submit_order

router = APIRouter()


@router.get("/global/sample", response_model=list[RankableItemRead])
async def sample_global_questions(user: CurrentUser, db: DbSession) -> list:
    """A random handful of public questions to rank."""
    try:
        return await present(global_sample_loader(db), QuestionRankStore(db))
    except QuestionBankError as e:
        raise http_error(e)


@router.post("/global/elo", response_model=EloResult)
async def submit_global_elo(
    data: RankingOrder,
    user: CurrentUser,
    db: DbSession,
) -> EloResult:
    """Record a best-first order of public questions as pairwise Elo outcomes."""
    try:
        scores = await submit_order(
            selected_questions_loader(db, data.ordered_ids),
            QuestionRankStore(db),
            SessionMode.ELO,
            data.ordered_ids,
        )
    except QuestionBankError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return EloResult(scores=scores)
