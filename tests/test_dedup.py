"""Tests for duplicate-question detection and the visibility filter."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from question_bank.core.errors import CandidateFetchError, EmbeddingProviderError
from question_bank.services.dedup import (
    DeduplicationMatcher,
    SimilarityCandidate,
    Visibility,
    candidates_from_hits,
    filter_by_visibility,
    get_organization_question_ids,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _hit(question_id, score, is_open=True, organization_id=None):
    return {
        "id": str(question_id),
        "score": score,
        "payload": {
            "question_id": str(question_id),
            "is_open": is_open,
            "organization_id": str(organization_id) if organization_id else None,
        },
    }


def _matcher(hits):
    store = MagicMock()
    store.search = AsyncMock(return_value=hits)
    return DeduplicationMatcher(store=store), store


# ─── Pure filter ──────────────────────────────────────────────────────────────

class TestCandidatesFromHits:
    def test_scores_clamped(self):
        a, b = uuid4(), uuid4()
        candidates = candidates_from_hits([_hit(a, 1.0000002), _hit(b, -0.1)])
        assert candidates[0].similarity_score == 1.0
        assert candidates[1].similarity_score == 0.0

    def test_falls_back_to_point_id(self):
        qid = uuid4()
        [candidate] = candidates_from_hits([{"id": str(qid), "score": 0.9, "payload": {}}])
        assert candidate.item_id == qid
        assert candidate.is_public is False
        assert candidate.organization_id is None


class TestFilterByVisibility:
    def setup_method(self):
        self.org = uuid4()
        self.public = SimilarityCandidate(uuid4(), 0.9, True)
        self.own = SimilarityCandidate(uuid4(), 0.9, False, self.org)
        self.foreign = SimilarityCandidate(uuid4(), 0.9, False, uuid4())
        self.candidates = [self.public, self.own, self.foreign]

    def test_public_submission_sees_only_public(self):
        assert filter_by_visibility(self.candidates, Visibility()) == [self.public]

    def test_private_submission_sees_own_organization(self):
        visible = filter_by_visibility(self.candidates, Visibility(self.org))
        assert visible == [self.own]

    def test_private_submission_sees_linked_questions(self):
        visible = filter_by_visibility(
            self.candidates, Visibility(self.org), {self.public.item_id}
        )
        assert visible == [self.public, self.own]

    def test_never_leaks_other_organizations(self):
        visible = filter_by_visibility(self.candidates, Visibility(uuid4()))
        assert visible == []


# ─── Matcher ──────────────────────────────────────────────────────────────────

class TestDeduplicationMatcher:
    @pytest.mark.asyncio
    async def test_public_submission_threshold(self):
        """0.85 public and 0.75 private with threshold 0.8 keeps only the first."""
        first, second = uuid4(), uuid4()
        matcher, store = _matcher([
            _hit(first, 0.85),
            _hit(second, 0.75, is_open=False, organization_id=uuid4()),
        ])

        result = await matcher.find_similar(MagicMock(), [0.1] * 4, Visibility(), threshold=0.8)

        assert [c.item_id for c in result] == [first]
        assert result[0].similarity_score == 0.85
        store.search.assert_awaited_once()
        assert store.search.call_args.kwargs["score_threshold"] == 0.8

    @pytest.mark.asyncio
    async def test_private_submission_uses_organization_links(self):
        org = uuid4()
        public_linked, own, public_unlinked, foreign = uuid4(), uuid4(), uuid4(), uuid4()
        matcher, _ = _matcher([
            _hit(public_linked, 0.95),
            _hit(own, 0.9, is_open=False, organization_id=org),
            _hit(public_unlinked, 0.88),
            _hit(foreign, 0.86, is_open=False, organization_id=uuid4()),
        ])

        with patch(
            "question_bank.services.dedup.get_organization_question_ids",
            new=AsyncMock(return_value={public_linked}),
        ) as mock_links:
            result = await matcher.find_similar(
                MagicMock(), [0.1] * 4, Visibility(org), threshold=0.8
            )

        assert [c.item_id for c in result] == [public_linked, own]
        mock_links.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sorted_and_truncated(self):
        ids = [uuid4() for _ in range(7)]
        scores = [0.81, 0.99, 0.85, 0.9, 0.83, 0.95, 0.87]
        matcher, _ = _matcher([_hit(i, s) for i, s in zip(ids, scores)])

        result = await matcher.find_similar(
            MagicMock(), [0.1], Visibility(), threshold=0.8, result_limit=5
        )

        assert [c.similarity_score for c in result] == [0.99, 0.95, 0.9, 0.87, 0.85]

    @pytest.mark.asyncio
    async def test_excluded_question_dropped(self):
        viewed, other = uuid4(), uuid4()
        matcher, _ = _matcher([_hit(viewed, 1.0), _hit(other, 0.7)])

        result = await matcher.find_similar(
            MagicMock(), [0.1], Visibility(), threshold=0.6, exclude_id=viewed
        )

        assert [c.item_id for c in result] == [other]

    @pytest.mark.asyncio
    async def test_missing_embedding_raises(self):
        matcher, store = _matcher([])
        with pytest.raises(EmbeddingProviderError):
            await matcher.find_similar(MagicMock(), [], Visibility(), threshold=0.8)
        store.search.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            UnexpectedResponse(500, "Internal Server Error", b"collection missing", {}),
            ResponseHandlingException(ConnectionError("connection refused")),
        ],
    )
    async def test_index_failure_is_fetch_error(self, error):
        store = MagicMock()
        store.search = AsyncMock(side_effect=error)
        matcher = DeduplicationMatcher(store=store)

        with pytest.raises(CandidateFetchError):
            await matcher.find_similar(MagicMock(), [0.1], Visibility(), threshold=0.8)


class TestOrganizationQuestionIds:
    @pytest.mark.asyncio
    async def test_empty_id_list_skips_query(self):
        db = MagicMock()
        db.execute = AsyncMock()
        assert await get_organization_question_ids(db, uuid4(), []) == set()
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_returns_ids(self):
        qid = uuid4()
        db = MagicMock()
        result = MagicMock()
        result.all.return_value = [(qid,)]
        db.execute = AsyncMock(return_value=result)

        assert await get_organization_question_ids(db, uuid4(), [qid]) == {qid}
