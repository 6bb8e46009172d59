"""Tests for the ranking session state machine."""

import asyncio
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from question_bank.core.errors import (
    CandidateFetchError,
    RankingWriteError,
    SessionStateError,
)
from question_bank.core.ranking.elo import expected_score
from question_bank.core.ranking.session import (
    RankableItem,
    RankingSession,
    SessionMode,
    SessionState,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

class MemoryStore:
    """Dict-backed rank store recording every write."""

    def __init__(self, baseline=1500.0):
        self.baseline = baseline
        self.scores = {}
        self.ranks = {}
        self.writes = []

    async def get_elo_scores(self, scope_id, item_ids):
        return {i: self.scores.get(i, self.baseline) for i in item_ids}

    async def set_elo_scores(self, scope_id, scores):
        self.writes.append(dict(scores))
        self.scores.update(scores)

    async def set_manual_ranks(self, scope_id, ranks):
        self.writes.append(dict(ranks))
        self.ranks = dict(ranks)


def _items(*names):
    return [RankableItem(id=uuid4(), content=name) for name in names]


def _loader(items):
    return AsyncMock(return_value=items)


# ─── Loading ──────────────────────────────────────────────────────────────────

class TestLoad:
    @pytest.mark.asyncio
    async def test_load_presents_candidates(self):
        items = _items("A", "B", "C")
        session = RankingSession(_loader(items), MemoryStore())

        loaded = await session.load()

        assert session.state is SessionState.PRESENTING
        assert [i.content for i in loaded] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_fetch_failure_moves_to_error(self):
        loader = AsyncMock(side_effect=CandidateFetchError("db down"))
        session = RankingSession(loader, MemoryStore())

        with pytest.raises(CandidateFetchError):
            await session.load()

        assert session.state is SessionState.ERROR

    @pytest.mark.asyncio
    async def test_unexpected_failure_wrapped(self):
        loader = AsyncMock(side_effect=RuntimeError("boom"))
        session = RankingSession(loader, MemoryStore())

        with pytest.raises(CandidateFetchError):
            await session.load()

    @pytest.mark.asyncio
    async def test_retry_after_error(self):
        items = _items("A", "B")
        loader = AsyncMock(side_effect=[CandidateFetchError("flaky"), items])
        session = RankingSession(loader, MemoryStore())

        with pytest.raises(CandidateFetchError):
            await session.load()
        await session.load()

        assert session.state is SessionState.PRESENTING

    @pytest.mark.asyncio
    async def test_cannot_load_while_presenting(self):
        session = RankingSession(_loader(_items("A")), MemoryStore())
        await session.load()
        with pytest.raises(SessionStateError):
            await session.load()


# ─── Reordering ───────────────────────────────────────────────────────────────

class TestReorder:
    @pytest.mark.asyncio
    async def test_drag_and_drop(self):
        session = RankingSession(_loader(_items("Q1", "Q2", "Q3")), MemoryStore())
        await session.load()

        session.reorder(2, 0)

        assert [i.content for i in session.items] == ["Q3", "Q1", "Q2"]

    @pytest.mark.asyncio
    async def test_destination_clamped(self):
        session = RankingSession(_loader(_items("Q1", "Q2", "Q3")), MemoryStore())
        await session.load()

        session.reorder(0, 10)

        assert [i.content for i in session.items] == ["Q2", "Q3", "Q1"]

    @pytest.mark.asyncio
    async def test_bad_source(self):
        session = RankingSession(_loader(_items("Q1")), MemoryStore())
        await session.load()
        with pytest.raises(IndexError):
            session.reorder(3, 0)

    @pytest.mark.asyncio
    async def test_set_order_requires_same_ids(self):
        items = _items("A", "B")
        session = RankingSession(_loader(items), MemoryStore())
        await session.load()

        with pytest.raises(ValueError):
            session.set_order([items[0].id])
        with pytest.raises(ValueError):
            session.set_order([items[0].id, items[0].id])
        with pytest.raises(ValueError):
            session.set_order([items[0].id, uuid4()])

    def test_reorder_before_load(self):
        session = RankingSession(_loader([]), MemoryStore())
        with pytest.raises(SessionStateError):
            session.reorder(0, 1)


# ─── Submission ───────────────────────────────────────────────────────────────

class TestSubmit:
    @pytest.mark.asyncio
    async def test_elo_three_way(self):
        a, b, c = items = _items("A", "B", "C")
        store = MemoryStore()
        session = RankingSession(_loader(items), store, SessionMode.ELO, k_factor=32.0)
        await session.load()

        scores = await session.submit()

        assert session.state is SessionState.COMPLETE
        assert scores[a.id] > 1500.0
        assert scores[c.id] < 1500.0
        assert scores[b.id] == pytest.approx(1500.0, abs=1.0)
        # one read-update-write per pair
        assert len(store.writes) == 3
        assert set(store.writes[0]) == {a.id, b.id}
        assert set(store.writes[1]) == {a.id, c.id}
        assert set(store.writes[2]) == {b.id, c.id}

    @pytest.mark.asyncio
    async def test_elo_reads_current_scores(self):
        a, b = items = _items("A", "B")
        store = MemoryStore()
        store.scores = {a.id: 1400.0, b.id: 1600.0}
        session = RankingSession(_loader(items), store, SessionMode.ELO, k_factor=32.0)
        await session.load()

        scores = await session.submit()

        delta = 32.0 * (1 - expected_score(1400.0, 1600.0))
        assert scores[a.id] == pytest.approx(1400.0 + delta)
        assert scores[b.id] == pytest.approx(1600.0 - delta)

    @pytest.mark.asyncio
    async def test_manual_resequence(self):
        q1, q2, q3 = items = _items("Q1", "Q2", "Q3")
        store = MemoryStore()
        session = RankingSession(_loader(items), store, SessionMode.MANUAL)
        await session.load()
        session.set_order([q3.id, q1.id, q2.id])

        ranks = await session.submit()

        assert ranks == {q3.id: 1, q1.id: 2, q2.id: 3}
        assert store.writes == [ranks]
        assert [i.manual_rank for i in session.items] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_write_failure_keeps_earlier_pairs(self):
        items = _items("A", "B", "C")
        store = MemoryStore()
        store.set_elo_scores = AsyncMock(side_effect=[None, RankingWriteError("lost")])
        session = RankingSession(_loader(items), store, SessionMode.ELO)
        await session.load()

        with pytest.raises(RankingWriteError):
            await session.submit()

        assert session.state is SessionState.ERROR
        assert store.set_elo_scores.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_write_failure_wrapped(self):
        store = MagicMock()
        store.set_manual_ranks = AsyncMock(side_effect=RuntimeError("boom"))
        session = RankingSession(_loader(_items("A")), store, SessionMode.MANUAL)
        await session.load()

        with pytest.raises(RankingWriteError):
            await session.submit()

    @pytest.mark.asyncio
    async def test_reload_after_complete(self):
        store = MemoryStore()
        loader = AsyncMock(side_effect=[_items("A", "B"), _items("C", "D")])
        session = RankingSession(loader, store, SessionMode.ELO)
        await session.load()
        await session.submit()

        reloaded = await session.load()

        assert [i.content for i in reloaded] == ["C", "D"]


# ─── Cancellation ─────────────────────────────────────────────────────────────

class TestClose:
    @pytest.mark.asyncio
    async def test_close_cancels_inflight_load(self):
        started = asyncio.Event()

        async def slow_loader():
            started.set()
            await asyncio.sleep(10)
            return []

        session = RankingSession(slow_loader, MemoryStore())
        task = asyncio.ensure_future(session.load())
        await started.wait()

        await session.close()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_closed_session_rejects_operations(self):
        session = RankingSession(_loader(_items("A")), MemoryStore())
        await session.close()

        with pytest.raises(SessionStateError):
            await session.load()
