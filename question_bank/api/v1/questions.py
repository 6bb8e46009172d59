"""Question endpoints."""

import logging
from uuid import UUID

from arq import ArqRedis, create_pool
from fastapi import APIRouter, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.core.errors import QuestionBankError
from question_bank.deps import CurrentUser, DbSession, http_error
from question_bank.models.question import Question
from question_bank.models.user import User
from question_bank.schemas.question import (
    QuestionCreate,
    QuestionRead,
    QuestionSubmitResponse,
    SimilarCheckRequest,
    SimilarQuestionRead,
)
from question_bank.schemas.response import ResponseCreate, ResponseRead
from question_bank.services.question import question_service
from question_bank.workers.settings import redis_settings

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_arq_pool() -> ArqRedis:
    """Get Arq Redis connection pool."""
    return await create_pool(redis_settings)


async def _get_visible_question(db: AsyncSession, user: User, question_id: UUID) -> Question:
    question = await db.get(Question, question_id)
    if not question or not await question_service.can_view(db, user, question):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found",
        )
    return question


@router.post("/check-similar", response_model=list[SimilarQuestionRead])
async def check_similar(
    data: SimilarCheckRequest,
    user: CurrentUser,
    db: DbSession,
) -> list:
    """List visible questions similar to a draft, without submitting it."""
    try:
        visibility = await question_service.resolve_visibility(
            db, user, data.is_open, data.organization_id
        )
        return await question_service.find_similar_to_text(db, data.content, visibility)
    except QuestionBankError as e:
        raise http_error(e)


@router.post("", response_model=QuestionSubmitResponse)
async def submit_question(
    data: QuestionCreate,
    user: CurrentUser,
    db: DbSession,
) -> QuestionSubmitResponse:
    """Submit a question.

    When similar questions exist and `check_duplicates` is set, nothing is
    inserted and the similar questions are returned instead.
    """
    try:
        result = await question_service.submit(
            db,
            user,
            data.content,
            is_open=data.is_open,
            organization_id=data.organization_id,
            check_duplicates=data.check_duplicates,
        )
    except QuestionBankError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    if result.created:
        # Queue indexing so the question shows up in future similarity checks
        pool = await get_arq_pool()
        await pool.enqueue_job("index_question", str(result.question.id))
        await pool.close()

    return QuestionSubmitResponse(
        created=result.created,
        question=QuestionRead.model_validate(result.question) if result.created else None,
        similar=[SimilarQuestionRead.model_validate(s) for s in result.similar],
    )


@router.get("/{question_id}", response_model=QuestionRead)
async def get_question(
    question_id: UUID,
    user: CurrentUser,
    db: DbSession,
) -> Question:
    """Get a question."""
    return await _get_visible_question(db, user, question_id)


@router.get("/{question_id}/similar", response_model=list[SimilarQuestionRead])
async def get_similar_questions(
    question_id: UUID,
    user: CurrentUser,
    db: DbSession,
) -> list:
    """Questions similar to this one, within its own visibility scope."""
    question = await _get_visible_question(db, user, question_id)
    try:
        return await question_service.find_similar_to_question(db, question)
    except QuestionBankError as e:
        raise http_error(e)


@router.post(
    "/{question_id}/responses",
    response_model=ResponseRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_response(
    question_id: UUID,
    data: ResponseCreate,
    user: CurrentUser,
    db: DbSession,
) -> ResponseRead:
    """Answer a question the caller can see."""
    question = await _get_visible_question(db, user, question_id)
    try:
        response = await question_service.add_response(
            db,
            user,
            question,
            data.content,
            response_type=data.response_type,
            url=data.url,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return ResponseRead.model_validate(response)
