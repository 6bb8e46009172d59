"""Tests for the question submission flow."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from question_bank.core.errors import EmbeddingProviderError, VisibilityError
from question_bank.models.question import Question
from question_bank.models.response import Response, ResponseType
from question_bank.services.dedup import SimilarityCandidate, Visibility
from question_bank.services.embedding import QuestionEmbedding
from question_bank.services.question import QuestionService


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _service(similar=None, embed_error=None):
    embedder = MagicMock()
    embedder.embed_question = AsyncMock(
        return_value=QuestionEmbedding(embedding=[0.1, 0.2], category="Health"),
        side_effect=embed_error,
    )
    embedder.embed_text = AsyncMock(return_value=[0.1, 0.2])
    matcher = MagicMock()
    matcher.find_similar = AsyncMock(return_value=similar or [])
    return QuestionService(embedder=embedder, matcher=matcher), embedder, matcher


def _db(*results):
    db = MagicMock()
    db.execute = AsyncMock(side_effect=list(results))
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    return db


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _rows(rows):
    result = MagicMock()
    result.all.return_value = rows
    return result


def _user():
    return SimpleNamespace(id=uuid4())


# ─── Submission ───────────────────────────────────────────────────────────────

class TestSubmit:
    @pytest.mark.asyncio
    async def test_inserts_when_no_duplicates(self):
        service, embedder, matcher = _service()
        db = _db()
        user = _user()

        result = await service.submit(db, user, "  How do we reduce child poverty?  ")

        assert result.created
        question = db.add.call_args.args[0]
        assert isinstance(question, Question)
        assert question.content == "How do we reduce child poverty?"
        assert question.category == "Health"
        assert question.organization_id is None
        assert question.created_by == user.id
        db.commit.assert_awaited_once()
        assert matcher.find_similar.call_args.kwargs["threshold"] == 0.8

    @pytest.mark.asyncio
    async def test_similar_questions_stop_the_insert(self):
        existing = uuid4()
        service, _, _ = _service(similar=[SimilarityCandidate(existing, 0.85, True)])
        db = _db(_rows([(existing, "How can we cut child poverty?")]))

        result = await service.submit(db, _user(), "How do we reduce child poverty?")

        assert not result.created
        assert [(s.id, s.similarity) for s in result.similar] == [(existing, 0.85)]
        assert result.similar[0].content == "How can we cut child poverty?"
        db.add.assert_not_called()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_check_can_be_skipped(self):
        service, _, matcher = _service(similar=[SimilarityCandidate(uuid4(), 0.9, True)])
        db = _db()

        result = await service.submit(db, _user(), "Question?", check_duplicates=False)

        assert result.created
        matcher.find_similar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_content_rejected_before_embedding(self):
        service, embedder, _ = _service()

        with pytest.raises(ValueError):
            await service.submit(_db(), _user(), "   ")

        embedder.embed_question.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_failure_aborts(self):
        service, _, matcher = _service(embed_error=EmbeddingProviderError("down"))
        db = _db()

        with pytest.raises(EmbeddingProviderError):
            await service.submit(db, _user(), "Question?")

        matcher.find_similar.assert_not_awaited()
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_private_question_belongs_to_organization(self):
        org = uuid4()
        service, _, matcher = _service()
        db = _db(_scalar(org))

        await service.submit(db, _user(), "Internal question?", is_open=False)

        assert db.add.call_args.args[0].organization_id == org
        assert matcher.find_similar.call_args.args[2] == Visibility(org)


class TestResolveVisibility:
    @pytest.mark.asyncio
    async def test_public_needs_no_lookup(self):
        service, _, _ = _service()
        db = _db()

        assert await service.resolve_visibility(db, _user(), True) == Visibility()
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_private_without_organization(self):
        service, _, _ = _service()
        with pytest.raises(VisibilityError):
            await service.resolve_visibility(_db(_scalar(None)), _user(), False)


class TestFindSimilarToQuestion:
    @pytest.mark.asyncio
    async def test_uses_detail_threshold_and_excludes_itself(self):
        service, _, matcher = _service()
        org = uuid4()
        question = SimpleNamespace(
            id=uuid4(), content="Q?", is_open=False, organization_id=org
        )

        await service.find_similar_to_question(_db(), question)

        kwargs = matcher.find_similar.call_args.kwargs
        assert kwargs["threshold"] == 0.6
        assert kwargs["exclude_id"] == question.id
        assert matcher.find_similar.call_args.args[2] == Visibility(org)


class TestOrganizationAssociation:
    @pytest.mark.asyncio
    async def test_add_reports_new_link(self):
        service, _, _ = _service()
        db = _db(SimpleNamespace(rowcount=1))
        assert await service.add_to_organization(db, uuid4(), uuid4()) is True

    @pytest.mark.asyncio
    async def test_add_existing_link(self):
        service, _, _ = _service()
        db = _db(SimpleNamespace(rowcount=0))
        assert await service.add_to_organization(db, uuid4(), uuid4()) is False

    @pytest.mark.asyncio
    async def test_can_view_public(self):
        service, _, _ = _service()
        db = _db()
        assert await service.can_view(db, _user(), SimpleNamespace(is_open=True))
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_question_in_organization(self):
        service, _, _ = _service()
        question_id = uuid4()
        db = _db(_scalar(question_id))
        assert await service.in_organization(db, uuid4(), question_id) is True
        assert "organization_questions" in str(db.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_question_of_another_organization(self):
        service, _, _ = _service()
        db = _db(_scalar(None))
        assert await service.in_organization(db, uuid4(), uuid4()) is False


# ─── Responses ────────────────────────────────────────────────────────────────

class TestAddResponse:
    @pytest.mark.asyncio
    async def test_inserts_trimmed_response(self):
        service, _, _ = _service()
        db = _db()
        user = _user()
        question = SimpleNamespace(id=uuid4())

        response = await service.add_response(
            db, user, question, "  Talk to your neighbours  ",
            response_type=ResponseType.WAY_OF_ANSWERING,
            url=" https://example.org/guide ",
        )

        assert isinstance(response, Response)
        assert response.content == "Talk to your neighbours"
        assert response.url == "https://example.org/guide"
        assert response.response_type == "way_of_answering"
        assert response.question_id == question.id
        assert response.created_by == user.id
        db.add.assert_called_once_with(response)
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_defaults_to_other_without_url(self):
        service, _, _ = _service()
        response = await service.add_response(_db(), _user(), SimpleNamespace(id=uuid4()), "Maybe")
        assert response.response_type == "other"
        assert response.url is None

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self):
        service, _, _ = _service()
        db = _db()
        with pytest.raises(ValueError):
            await service.add_response(db, _user(), SimpleNamespace(id=uuid4()), "   ")
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self):
        service, _, _ = _service()
        db = _db()
        with pytest.raises(ValueError):
            await service.add_response(db, _user(), SimpleNamespace(id=uuid4()), "Yes", "opinion")
        db.add.assert_not_called()
