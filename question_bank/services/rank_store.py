"""Ranking state persistence keyed by (item_id, scope_id).

Stores hold no business rules. Reads return baseline records for items that
were never ranked; writes are single multi-row upserts committed on their own.
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.core.errors import CandidateFetchError, RankingWriteError
from question_bank.core.ranking.kanban import KanbanUpdate
from question_bank.models.question import Question
from question_bank.models.ranking import OrganizationQuestionRanking, ResponseRanking
from question_bank.models.response import Response

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class RankingRecord:
    """Mutable ranking state of one item within one scope."""

    item_id: UUID
    scope_id: UUID | None
    elo_score: float
    manual_rank: int | None = None
    kanban_status: str | None = None
    kanban_order: int | None = None


class RankStore:
    """Base store over an organization-scoped ranking table."""

    model: Any = None
    item_column: str = ""
    conflict_columns: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession, baseline: float | None = None) -> None:
        self.db = db
        self.baseline = settings.elo_baseline if baseline is None else baseline

    @property
    def _item_attr(self):
        return getattr(self.model, self.item_column)

    def _require_scope(self, scope_id: UUID | None) -> UUID:
        if scope_id is None:
            raise ValueError(f"{type(self).__name__} requires an organization scope")
        return scope_id

    async def _row_defaults(self, item_ids: Sequence[UUID]) -> dict[UUID, dict]:
        """Extra NOT NULL columns an inserted row needs, per item."""
        return {item_id: {} for item_id in item_ids}

    async def get_records(
        self,
        scope_id: UUID | None,
        item_ids: Sequence[UUID] | None = None,
    ) -> dict[UUID, RankingRecord]:
        """Read ranking records for a scope.

        With `item_ids`, every requested item is present in the result, at the
        baseline when it has no stored record. Without, only stored records
        are returned.
        """
        scope_id = self._require_scope(scope_id)
        query = select(self.model).where(self.model.organization_id == scope_id)
        if item_ids is not None:
            query = query.where(self._item_attr.in_(list(item_ids)))

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read rankings for scope {scope_id}: {e}")
            raise CandidateFetchError("Could not read ranking records") from e

        records = {
            getattr(row, self.item_column): RankingRecord(
                item_id=getattr(row, self.item_column),
                scope_id=scope_id,
                elo_score=row.elo_score,
                manual_rank=row.manual_rank,
                kanban_status=row.kanban_status,
                kanban_order=row.kanban_order,
            )
            for row in result.scalars().all()
        }
        for item_id in item_ids or []:
            records.setdefault(
                item_id,
                RankingRecord(item_id=item_id, scope_id=scope_id, elo_score=self.baseline),
            )
        return records

    async def get_elo_scores(
        self,
        scope_id: UUID | None,
        item_ids: Sequence[UUID],
    ) -> dict[UUID, float]:
        """Current Elo scores, baseline for never-compared items."""
        records = await self.get_records(scope_id, item_ids)
        return {item_id: records[item_id].elo_score for item_id in item_ids}

    async def _upsert(
        self,
        scope_id: UUID,
        rows: dict[UUID, dict[str, Any]],
        update_columns: Sequence[str],
    ) -> None:
        """Insert-or-update rows in one statement, then commit."""
        if not rows:
            return

        defaults = await self._row_defaults(list(rows))
        values = [
            {
                "organization_id": scope_id,
                self.item_column: item_id,
                **defaults.get(item_id, {}),
                **columns,
            }
            for item_id, columns in rows.items()
        ]
        stmt = insert(self.model).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(self.conflict_columns),
            set_={column: getattr(stmt.excluded, column) for column in update_columns},
        )

        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to upsert {len(values)} rankings for scope {scope_id}: {e}")
            raise RankingWriteError("Could not save ranking update") from e

    async def set_elo_scores(self, scope_id: UUID | None, scores: dict[UUID, float]) -> None:
        """Persist new Elo scores."""
        scope_id = self._require_scope(scope_id)
        await self._upsert(
            scope_id,
            {item_id: {"elo_score": score} for item_id, score in scores.items()},
            ["elo_score"],
        )

    async def set_manual_ranks(self, scope_id: UUID | None, ranks: dict[UUID, int]) -> None:
        """Persist a full manual ranking (last write wins)."""
        scope_id = self._require_scope(scope_id)
        await self._upsert(
            scope_id,
            {item_id: {"manual_rank": rank} for item_id, rank in ranks.items()},
            ["manual_rank"],
        )

    async def set_kanban(self, scope_id: UUID | None, updates: Sequence[KanbanUpdate]) -> None:
        """Persist kanban placements for the touched columns."""
        scope_id = self._require_scope(scope_id)
        await self._upsert(
            scope_id,
            {
                u.item_id: {"kanban_status": u.column, "kanban_order": u.order}
                for u in updates
            },
            ["kanban_status", "kanban_order"],
        )


class QuestionRankStore(RankStore):
    """Question rankings.

    The global scope (`scope_id=None`) only carries an Elo score, stored on
    the question row itself.
    """

    model = OrganizationQuestionRanking
    item_column = "question_id"
    conflict_columns = ("organization_id", "question_id")

    async def get_elo_scores(
        self,
        scope_id: UUID | None,
        item_ids: Sequence[UUID],
    ) -> dict[UUID, float]:
        if scope_id is not None:
            return await super().get_elo_scores(scope_id, item_ids)

        try:
            result = await self.db.execute(
                select(Question.id, Question.elo_score).where(Question.id.in_(list(item_ids)))
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to read global Elo scores: {e}")
            raise CandidateFetchError("Could not read Elo scores") from e

        stored = {row[0]: row[1] for row in result.all()}
        return {item_id: stored.get(item_id, self.baseline) for item_id in item_ids}

    async def set_elo_scores(self, scope_id: UUID | None, scores: dict[UUID, float]) -> None:
        if scope_id is not None:
            await super().set_elo_scores(scope_id, scores)
            return

        try:
            for item_id, score in scores.items():
                await self.db.execute(
                    update(Question).where(Question.id == item_id).values(elo_score=score)
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to write global Elo scores: {e}")
            raise RankingWriteError("Could not save Elo scores") from e


class ResponseRankStore(RankStore):
    """Response rankings, always organization-scoped."""

    model = ResponseRanking
    item_column = "response_id"
    conflict_columns = ("response_id", "organization_id")

    async def _row_defaults(self, item_ids: Sequence[UUID]) -> dict[UUID, dict]:
        try:
            result = await self.db.execute(
                select(Response.id, Response.question_id).where(Response.id.in_(list(item_ids)))
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to resolve response questions: {e}")
            raise RankingWriteError("Could not resolve responses") from e

        question_ids = {row[0]: row[1] for row in result.all()}
        missing = [item_id for item_id in item_ids if item_id not in question_ids]
        if missing:
            raise RankingWriteError(f"Unknown responses: {', '.join(map(str, missing))}")
        return {item_id: {"question_id": question_ids[item_id]} for item_id in item_ids}
