"""Tests for ranking persistence with a mocked database session."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from question_bank.core.errors import CandidateFetchError, RankingWriteError
from question_bank.core.ranking.kanban import KanbanUpdate
from question_bank.services.rank_store import QuestionRankStore, ResponseRankStore


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _db(*results):
    db = MagicMock()
    db.execute = AsyncMock(side_effect=list(results))
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def _scalars_result(rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


def _rows_result(rows):
    result = MagicMock()
    result.all.return_value = rows
    return result


def _ranking_row(question_id, elo_score=1500.0, manual_rank=None, status=None, order=None):
    return SimpleNamespace(
        question_id=question_id,
        elo_score=elo_score,
        manual_rank=manual_rank,
        kanban_status=status,
        kanban_order=order,
    )


# ─── Reads ────────────────────────────────────────────────────────────────────

class TestReads:
    @pytest.mark.asyncio
    async def test_unranked_items_get_baseline(self):
        org, ranked, fresh = uuid4(), uuid4(), uuid4()
        db = _db(_scalars_result([_ranking_row(ranked, 1620.0)]))
        store = QuestionRankStore(db, baseline=1500.0)

        scores = await store.get_elo_scores(org, [ranked, fresh])

        assert scores == {ranked: 1620.0, fresh: 1500.0}

    @pytest.mark.asyncio
    async def test_records_carry_kanban_state(self):
        org, qid = uuid4(), uuid4()
        db = _db(_scalars_result([_ranking_row(qid, manual_rank=2, status="Next", order=1)]))

        records = await QuestionRankStore(db).get_records(org)

        assert records[qid].manual_rank == 2
        assert records[qid].kanban_status == "Next"
        assert records[qid].kanban_order == 1

    @pytest.mark.asyncio
    async def test_global_scores_read_from_questions(self):
        stored, missing = uuid4(), uuid4()
        db = _db(_rows_result([(stored, 1700.0)]))
        store = QuestionRankStore(db, baseline=1500.0)

        scores = await store.get_elo_scores(None, [stored, missing])

        assert scores == {stored: 1700.0, missing: 1500.0}

    @pytest.mark.asyncio
    async def test_read_failure(self):
        db = _db(OperationalError("SELECT", {}, Exception("down")))
        with pytest.raises(CandidateFetchError):
            await QuestionRankStore(db).get_elo_scores(uuid4(), [uuid4()])

    @pytest.mark.asyncio
    async def test_response_rankings_need_a_scope(self):
        with pytest.raises(ValueError):
            await ResponseRankStore(_db()).get_records(None)


# ─── Writes ───────────────────────────────────────────────────────────────────

class TestWrites:
    @pytest.mark.asyncio
    async def test_manual_ranks_single_upsert(self):
        db = _db(MagicMock())
        ids = [uuid4(), uuid4(), uuid4()]

        await QuestionRankStore(db).set_manual_ranks(uuid4(), {i: n for n, i in enumerate(ids, 1)})

        db.execute.assert_awaited_once()
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_write_is_noop(self):
        db = _db()
        await QuestionRankStore(db).set_kanban(uuid4(), [])
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_failure_rolls_back(self):
        db = _db(OperationalError("INSERT", {}, Exception("down")))

        with pytest.raises(RankingWriteError):
            await QuestionRankStore(db).set_elo_scores(uuid4(), {uuid4(): 1510.0})

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_global_elo_updates_question_rows(self):
        db = _db(MagicMock(), MagicMock())

        await QuestionRankStore(db).set_elo_scores(None, {uuid4(): 1516.0, uuid4(): 1484.0})

        assert db.execute.await_count == 2
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_response_rows_resolve_question(self):
        org, response_id, question_id = uuid4(), uuid4(), uuid4()
        db = _db(_rows_result([(response_id, question_id)]), MagicMock())

        await ResponseRankStore(db).set_kanban(org, [KanbanUpdate(response_id, "Now", 0)])

        assert db.execute.await_count == 2
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_response_rejected(self):
        db = _db(_rows_result([]))

        with pytest.raises(RankingWriteError):
            await ResponseRankStore(db).set_manual_ranks(uuid4(), {uuid4(): 1})

        db.commit.assert_not_awaited()
