"""Ranking schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RankableItemRead(BaseModel):
    """A question or response presented for ranking."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    category: str | None = None
    created_at: datetime | None = None
    manual_rank: int | None = None


class RankingOrder(BaseModel):
    """A total order over ranked items, best first."""

    ordered_ids: list[UUID] = Field(..., min_length=1)


class EloResult(BaseModel):
    """Elo scores after a submission."""

    scores: dict[UUID, float]


class ManualRankResult(BaseModel):
    """Dense 1..N manual ranks after a submission."""

    ranks: dict[UUID, int]
