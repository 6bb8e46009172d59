"""Billing API endpoints."""

import logging

import stripe
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from question_bank.deps import CurrentUser, DbSession
from question_bank.services.stripe_service import stripe_service

router = APIRouter()
logger = logging.getLogger(__name__)


class CheckSessionResponse(BaseModel):
    """Status of a finished checkout session."""

    id: str
    payment_status: str | None
    subscription_status: str | None


@router.get("/check-session", response_model=CheckSessionResponse)
async def check_session(session_id: str, user: CurrentUser, db: DbSession) -> dict:
    """Look up a checkout session and resync its organization's status."""
    try:
        return await stripe_service.check_session(db, session_id)
    except stripe.error.InvalidRequestError as e:
        logger.error(f"Unknown checkout session {session_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Checkout session not found",
        )
    except stripe.error.StripeError as e:
        logger.error(f"Stripe error while checking session {session_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Billing provider unavailable",
        )
