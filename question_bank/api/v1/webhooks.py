"""Stripe webhooks endpoint."""

import logging

import stripe
from fastapi import APIRouter, HTTPException, Request, status

from question_bank.config import get_settings
from question_bank.deps import DbSession
from question_bank.services.stripe_service import stripe_service

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()

# Event type -> handler syncing the owning organization
EVENT_HANDLERS = {
    "checkout.session.completed": stripe_service.handle_checkout_completed,
    "customer.subscription.updated": stripe_service.handle_subscription_updated,
    "customer.subscription.deleted": stripe_service.handle_subscription_deleted,
    "invoice.payment_failed": stripe_service.handle_payment_failed,
}


@router.post("/stripe")
async def stripe_webhook(request: Request, db: DbSession) -> dict:
    """Sync organization subscription status from a signed Stripe event.

    Unhandled event types and events for unknown organizations are
    acknowledged and ignored.
    """
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe signature",
        )

    try:
        event = stripe.Webhook.construct_event(
            await request.body(), sig_header, settings.stripe_webhook_secret
        )
    except (ValueError, stripe.error.SignatureVerificationError) as e:
        logger.error(f"Rejected Stripe webhook: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook",
        )

    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.debug(f"Ignoring Stripe event {event.type}")
        return {"status": "ignored"}

    try:
        await handler(db, event.data.object)
        logger.info(f"Stripe event {event.type} ({event.id}) processed")
    except Exception as e:
        # Acknowledged regardless; the failure is only logged
        logger.exception(f"Error processing Stripe event {event.type}: {e}")

    return {"status": "ok"}
