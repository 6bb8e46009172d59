"""Pydantic schemas for API request/response validation."""

from question_bank.schemas.question import (
    QuestionCreate,
    QuestionRead,
    QuestionSubmitResponse,
    SimilarCheckRequest,
    SimilarQuestionRead,
)
from question_bank.schemas.embedding import EmbeddingRequest, EmbeddingResponse
from question_bank.schemas.ranking import (
    EloResult,
    ManualRankResult,
    RankableItemRead,
    RankingOrder,
)
from question_bank.schemas.kanban import (
    KanbanBoardRead,
    KanbanCardRead,
    KanbanMoveRequest,
    KanbanMoveResponse,
    KanbanUpdateRead,
    ResponseKanbanMoveRequest,
)
from question_bank.schemas.response import ResponseCreate, ResponseRead

__all__ = [
    "QuestionCreate",
    "QuestionRead",
    "QuestionSubmitResponse",
    "SimilarCheckRequest",
    "SimilarQuestionRead",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "EloResult",
    "ManualRankResult",
    "RankableItemRead",
    "RankingOrder",
    "KanbanBoardRead",
    "KanbanCardRead",
    "KanbanMoveRequest",
    "KanbanMoveResponse",
    "KanbanUpdateRead",
    "ResponseKanbanMoveRequest",
    "ResponseCreate",
    "ResponseRead",
]
