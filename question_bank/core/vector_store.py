"""Qdrant vector store client for question embeddings."""

from typing import Any
from uuid import UUID

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    PointStruct,
    VectorParams,
)

from question_bank.config import get_settings

settings = get_settings()


class VectorStore:
    """Async Qdrant vector store client.

    One point per question; the point id is the question id.
    """

    def __init__(self) -> None:
        self.client = AsyncQdrantClient(url=settings.qdrant_url)
        self.collection_name = settings.qdrant_collection
        self.vector_size = settings.embedding_dimensions

    async def ensure_collection(self) -> None:
        """Create collection if it doesn't exist."""
        collections = await self.client.get_collections()
        collection_names = [c.name for c in collections.collections]

        if self.collection_name not in collection_names:
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(
                    size=self.vector_size,
                    distance=Distance.COSINE,
                ),
            )

            # Payload indices for filtering
            await self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name="is_open",
                field_schema="bool",
            )
            await self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name="organization_id",
                field_schema="keyword",
            )

    async def upsert_question(
        self,
        question_id: UUID,
        vector: list[float],
        is_open: bool,
        organization_id: UUID | None,
    ) -> None:
        """Index (or re-index) a question's embedding."""
        await self.client.upsert(
            collection_name=self.collection_name,
            points=[
                PointStruct(
                    id=str(question_id),
                    vector=vector,
                    payload={
                        "question_id": str(question_id),
                        "is_open": is_open,
                        "organization_id": str(organization_id) if organization_id else None,
                    },
                )
            ],
        )

    async def search(
        self,
        query_vector: list[float],
        limit: int = 10,
        score_threshold: float = 0.0,
    ) -> list[dict[str, Any]]:
        """
        Nearest-neighbour search over all indexed questions.

        Returns list of dicts with:
        - id: str
        - score: float
        - payload: dict
        """
        results = await self.client.query_points(
            collection_name=self.collection_name,
            query=query_vector,
            limit=limit,
            score_threshold=score_threshold,
        )

        return [
            {
                "id": str(point.id),
                "score": point.score,
                "payload": point.payload or {},
            }
            for point in results.points
        ]


# Singleton instance
vector_store = VectorStore()
