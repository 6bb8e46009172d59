"""Tests for the OpenAI-backed embedding service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError

from question_bank.core.errors import EmbeddingProviderError
from question_bank.services.embedding import EmbeddingService


def _service(vector=(0.1, 0.2, 0.3), category="Health"):
    service = EmbeddingService()
    service.client = MagicMock()
    service.client.embeddings.create = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(embedding=list(vector))])
    )
    service.client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=category))]
        )
    )
    return service


class TestEmbedText:
    @pytest.mark.asyncio
    async def test_returns_vector_and_caches(self):
        service = _service()
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.openai_api_key = "sk-test"

            first = await service.embed_text("Why?")
            second = await service.embed_text("Why?")

        assert first == second == [0.1, 0.2, 0.3]
        service.client.embeddings.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_api_key_raises(self):
        service = _service()
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.openai_api_key = ""

            with pytest.raises(EmbeddingProviderError):
                await service.embed_text("Why?")

        service.client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error_raises(self):
        service = _service()
        service.client.embeddings.create.side_effect = OpenAIError("rate limited")
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.openai_api_key = "sk-test"

            with pytest.raises(EmbeddingProviderError):
                await service.embed_text("Why?")

    @pytest.mark.asyncio
    async def test_empty_vector_raises(self):
        service = _service(vector=())
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.openai_api_key = "sk-test"

            with pytest.raises(EmbeddingProviderError):
                await service.embed_text("Why?")


class TestCategorise:
    @pytest.mark.asyncio
    async def test_strips_quotes_and_punctuation(self):
        service = _service(category=' "Education".\nExtra text')
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.category_max_tokens = 50
            assert await service.categorise("How do schools help?") == "Education"

    @pytest.mark.asyncio
    async def test_empty_answer(self):
        service = _service(category="")
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.category_max_tokens = 50
            assert await service.categorise("?") is None

    @pytest.mark.asyncio
    async def test_provider_error_raises(self):
        service = _service()
        service.client.chat.completions.create.side_effect = OpenAIError("down")
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.category_max_tokens = 50
            with pytest.raises(EmbeddingProviderError):
                await service.categorise("?")


class TestEmbedQuestion:
    @pytest.mark.asyncio
    async def test_embedding_and_category(self):
        service = _service(category="Wellbeing")
        with patch("question_bank.services.embedding.settings") as mock_settings:
            mock_settings.openai_api_key = "sk-test"
            mock_settings.category_max_tokens = 50

            result = await service.embed_question("How do we support carers?")

        assert result.embedding == [0.1, 0.2, 0.3]
        assert result.category == "Wellbeing"
