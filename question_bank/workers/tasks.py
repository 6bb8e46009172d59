"""Arq task definitions for question indexing."""

import logging
from uuid import UUID

from arq import cron
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from question_bank.config import get_settings
from question_bank.core.errors import EmbeddingProviderError
from question_bank.core.vector_store import vector_store
from question_bank.models.question import Question
from question_bank.services.embedding import embedding_service
from question_bank.workers.settings import redis_settings

settings = get_settings()
logger = logging.getLogger(__name__)

PENDING_BATCH_SIZE = 50


# Create engine for worker (separate from web app)
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncSession:
    """Get database session for worker."""
    return async_session_maker()


async def _index(db: AsyncSession, question: Question) -> None:
    """Embed a question and upsert its point, then record the point id."""
    embedding = await embedding_service.embed_text(question.content)
    await vector_store.upsert_question(
        question.id,
        embedding,
        is_open=question.is_open,
        organization_id=question.organization_id,
    )
    question.qdrant_id = str(question.id)
    await db.commit()


async def index_question(ctx: dict, question_id: str) -> dict:
    """
    Index a newly submitted question for similarity search.

    Args:
        ctx: Arq context
        question_id: UUID of the question to index

    Returns:
        Dict with indexing result
    """
    db = await get_db()

    try:
        question = await db.get(Question, UUID(question_id))
        if not question:
            logger.error(f"Question {question_id} not found")
            return {"error": "Question not found"}

        await _index(db, question)
        logger.info(f"Question {question_id} indexed")
        return {"question_id": question_id, "indexed": True}

    except EmbeddingProviderError as e:
        # Left unindexed; picked up again by index_pending_questions
        logger.error(f"Could not embed question {question_id}: {e}")
        return {"question_id": question_id, "indexed": False, "error": str(e)}

    finally:
        await db.close()


async def index_pending_questions(ctx: dict) -> dict:
    """Index questions that never made it into the vector store."""
    db = await get_db()
    indexed = 0
    failed = 0

    try:
        result = await db.execute(
            select(Question)
            .where(Question.qdrant_id.is_(None))
            .order_by(Question.created_at)
            .limit(PENDING_BATCH_SIZE)
        )
        for question in result.scalars().all():
            try:
                await _index(db, question)
                indexed += 1
            except EmbeddingProviderError as e:
                logger.error(f"Could not embed question {question.id}: {e}")
                failed += 1

        if indexed or failed:
            logger.info(f"Pending questions indexed: {indexed}, failed: {failed}")
        return {"indexed": indexed, "failed": failed}

    finally:
        await db.close()


async def startup(ctx: dict) -> None:
    """Worker startup hook."""
    logger.info("Worker starting up...")
    await vector_store.ensure_collection()


async def shutdown(ctx: dict) -> None:
    """Worker shutdown hook."""
    logger.info("Worker shutting down...")
    await engine.dispose()


class WorkerSettings:
    """Arq worker settings."""

    functions = [index_question]
    cron_jobs = [
        cron(index_pending_questions, minute={0, 15, 30, 45}),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings
    max_jobs = 10
    job_timeout = 120
    keep_result = 3600  # Keep results for 1 hour
