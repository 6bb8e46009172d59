"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from question_bank.api.v1 import embeddings, questions, rankings, organizations, responses
from question_bank.api.v1 import billing, webhooks

api_router = APIRouter()

api_router.include_router(embeddings.router, prefix="/embeddings", tags=["embeddings"])
api_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_router.include_router(rankings.router, prefix="/rankings", tags=["rankings"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(responses.router, prefix="/organizations", tags=["responses"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
