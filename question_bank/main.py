"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from question_bank.api.v1.router import api_router
from question_bank.config import get_settings
from question_bank.core.vector_store import vector_store
from question_bank.database import engine

settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Check the database and the similarity index before serving."""
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    await vector_store.ensure_collection()
    logger.info(
        f"Question Bank API started (collection {vector_store.collection_name}, "
        f"{vector_store.vector_size} dimensions)"
    )

    yield

    await vector_store.client.close()
    await engine.dispose()


app = FastAPI(
    title="Question Bank",
    description="Question ranking and deduplication API",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn unhandled errors into a JSON 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    if settings.debug:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "type": type(exc).__name__},
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
