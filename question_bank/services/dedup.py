"""Duplicate-question detection: similarity search plus visibility filter."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable
from uuid import UUID

from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.core.errors import CandidateFetchError, EmbeddingProviderError
from question_bank.core.vector_store import VectorStore, vector_store
from question_bank.models.organization import organization_questions
from question_bank.models.question import Question

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class SimilarityCandidate:
    """A question returned by the similarity index."""

    item_id: UUID
    similarity_score: float
    is_public: bool
    organization_id: UUID | None = None


@dataclass(frozen=True)
class Visibility:
    """Who a submission (or question) is visible to.

    No organization means the public pool.
    """

    organization_id: UUID | None = None

    @property
    def is_public(self) -> bool:
        return self.organization_id is None


def candidates_from_hits(hits: Iterable[dict[str, Any]]) -> list[SimilarityCandidate]:
    """Map raw vector store hits to candidates, clamping scores into [0, 1]."""
    candidates = []
    for hit in hits:
        payload = hit.get("payload") or {}
        org_id = payload.get("organization_id")
        candidates.append(
            SimilarityCandidate(
                item_id=UUID(payload.get("question_id") or hit["id"]),
                similarity_score=max(0.0, min(1.0, float(hit["score"]))),
                is_public=bool(payload.get("is_open", False)),
                organization_id=UUID(org_id) if org_id else None,
            )
        )
    return candidates


def filter_by_visibility(
    candidates: Iterable[SimilarityCandidate],
    visibility: Visibility,
    organization_question_ids: set[UUID] | None = None,
) -> list[SimilarityCandidate]:
    """Drop candidates the submitter may not see.

    Public submissions keep only public candidates. Organization submissions
    keep only candidates associated with that organization, either owned
    directly or linked; `organization_question_ids` holds the linked ids.
    """
    if visibility.is_public:
        return [c for c in candidates if c.is_public]

    linked = organization_question_ids or set()
    return [
        c
        for c in candidates
        if c.organization_id == visibility.organization_id or c.item_id in linked
    ]


async def get_organization_question_ids(
    db: AsyncSession,
    organization_id: UUID,
    question_ids: list[UUID] | None = None,
) -> set[UUID]:
    """Ids of questions owned by or linked to an organization.

    Restricted to `question_ids` when given.
    """
    direct = select(Question.id.label("question_id")).where(
        Question.organization_id == organization_id
    )
    linked = select(organization_questions.c.question_id.label("question_id")).where(
        organization_questions.c.organization_id == organization_id
    )
    if question_ids is not None:
        if not question_ids:
            return set()
        direct = direct.where(Question.id.in_(question_ids))
        linked = linked.where(organization_questions.c.question_id.in_(question_ids))

    result = await db.execute(union(direct, linked))
    return {row[0] for row in result.all()}


class DeduplicationMatcher:
    """Finds existing questions similar to an embedding."""

    def __init__(self, store: VectorStore | None = None) -> None:
        self.store = store or vector_store

    async def find_similar(
        self,
        db: AsyncSession,
        embedding: list[float] | None,
        visibility: Visibility,
        threshold: float,
        limit: int | None = None,
        result_limit: int | None = None,
        exclude_id: UUID | None = None,
    ) -> list[SimilarityCandidate]:
        """
        Search the index and keep only visible candidates.

        Args:
            db: Database session (for organization associations)
            embedding: Query vector
            visibility: Public pool or a specific organization
            threshold: Minimum similarity score
            limit: Candidates requested from the index
            result_limit: Candidates kept after filtering
            exclude_id: Question never returned (the one being viewed)

        Returns:
            Candidates sorted by descending similarity

        Raises:
            EmbeddingProviderError: If no embedding is available
            CandidateFetchError: If the similarity index cannot be queried
        """
        if not embedding:
            raise EmbeddingProviderError("No embedding available for similarity search")

        limit = limit or settings.dedup_match_count
        result_limit = result_limit or settings.dedup_result_limit

        try:
            hits = await self.store.search(
                query_vector=embedding,
                limit=limit,
                score_threshold=threshold,
            )
        except (UnexpectedResponse, ResponseHandlingException) as e:
            logger.error(f"Similarity search failed: {e}")
            raise CandidateFetchError("Similarity index unavailable") from e

        candidates = [
            c
            for c in candidates_from_hits(hits)
            if c.similarity_score >= threshold and c.item_id != exclude_id
        ]

        linked_ids: set[UUID] = set()
        if not visibility.is_public and candidates:
            linked_ids = await get_organization_question_ids(
                db,
                visibility.organization_id,
                [c.item_id for c in candidates],
            )

        visible = filter_by_visibility(candidates, visibility, linked_ids)
        visible.sort(key=lambda c: c.similarity_score, reverse=True)

        logger.debug(
            "Similarity search: %d hits, %d above threshold, %d visible",
            len(hits),
            len(candidates),
            len(visible),
        )
        return visible[:result_limit]


# Singleton instance
dedup_matcher = DeduplicationMatcher()
