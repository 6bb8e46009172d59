"""Embedding and categorisation service backed by OpenAI."""

import hashlib
import logging
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from question_bank.config import get_settings
from question_bank.core.errors import EmbeddingProviderError

settings = get_settings()
logger = logging.getLogger(__name__)

CATEGORIES = [
    "Poverty",
    "Health",
    "Advice",
    "Education",
    "Environment",
    "Philanthropy",
    "Wellbeing",
    "Technology",
    "Citizenship",
    "Neighbourhoods",
]

_CATEGORY_PROMPT = (
    'Question: "{question}"\n'
    "Categorise this question into one of the following categories: {categories}. "
    "If no category closely matches, create a new one. Use the most specific "
    "category that matches. Use British English. Answer with a single category "
    "and nothing else.\nCategory:"
)


@dataclass
class QuestionEmbedding:
    """Embedding plus category for a question text."""

    embedding: list[float]
    category: str | None


class EmbeddingService:
    """Service for generating question embeddings and categories."""

    def __init__(self) -> None:
        self.client = AsyncOpenAI(api_key=settings.openai_api_key or "missing")
        self.model = settings.embedding_model
        self.category_model = settings.category_model
        self._cache: dict[str, list[float]] = {}

    def _cache_key(self, text: str) -> str:
        """Generate cache key for text."""
        text_hash = hashlib.sha256(text.encode()).hexdigest()
        return f"{self.model}:{text_hash}"

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Raises:
            EmbeddingProviderError: If the provider fails or returns no vector
        """
        if not settings.openai_api_key:
            raise EmbeddingProviderError("OPENAI_API_KEY is not set")

        cache_key = self._cache_key(text)
        if cache_key in self._cache:
            return self._cache[cache_key]

        try:
            response = await self.client.embeddings.create(input=text, model=self.model)
        except OpenAIError as e:
            logger.error(f"Embedding request failed: {e}")
            raise EmbeddingProviderError(f"Embedding request failed: {e}") from e

        if not response.data or not response.data[0].embedding:
            raise EmbeddingProviderError("Embedding provider returned no vector")

        embedding = response.data[0].embedding
        self._cache[cache_key] = embedding
        return embedding

    async def categorise(self, question: str) -> str | None:
        """Pick a single category for a question."""
        prompt = _CATEGORY_PROMPT.format(
            question=question,
            categories=", ".join(CATEGORIES),
        )
        try:
            response = await self.client.chat.completions.create(
                model=self.category_model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=settings.category_max_tokens,
                temperature=0,
            )
        except OpenAIError as e:
            logger.error(f"Category request failed: {e}")
            raise EmbeddingProviderError(f"Category request failed: {e}") from e

        content = response.choices[0].message.content or ""
        category = content.strip().split("\n")[0].strip(' ".')
        return category or None

    async def embed_question(self, question: str) -> QuestionEmbedding:
        """Generate `{embedding, category}` for a question text."""
        embedding = await self.embed_text(question)
        category = await self.categorise(question)
        logger.info(f"Embedded question ({len(embedding)} dims), category={category}")
        return QuestionEmbedding(embedding=embedding, category=category)


# Singleton instance
embedding_service = EmbeddingService()
