"""Stripe subscription sync for organizations."""

import logging
from uuid import UUID

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.models.organization import Organization, SubscriptionStatus

logger = logging.getLogger(__name__)


def _organization_id_from_metadata(metadata) -> UUID | None:
    """Checkout sessions carry the organization id under either key."""
    if not metadata:
        return None
    raw = metadata.get("organization_id") or metadata.get("organizationId")
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed organization id in metadata: {raw}")
        return None


class StripeService:
    """Keeps `organizations.subscription_status` in step with Stripe."""

    def __init__(self) -> None:
        self.settings = get_settings()
        stripe.api_key = self.settings.stripe_secret_key

    async def get_by_subscription(
        self,
        db: AsyncSession,
        stripe_subscription_id: str,
    ) -> Organization | None:
        result = await db.execute(
            select(Organization).where(
                Organization.stripe_subscription_id == stripe_subscription_id
            )
        )
        return result.scalar_one_or_none()

    async def handle_checkout_completed(
        self,
        db: AsyncSession,
        session: stripe.checkout.Session,
    ) -> None:
        """Handle checkout.session.completed webhook event.

        Args:
            db: Database session
            session: Stripe checkout session object
        """
        organization_id = _organization_id_from_metadata(session.metadata)
        if not organization_id or not session.subscription:
            return

        organization = await db.get(Organization, organization_id)
        if organization is None:
            logger.warning(f"Checkout completed for unknown organization {organization_id}")
            return

        stripe_subscription = stripe.Subscription.retrieve(session.subscription)

        organization.stripe_customer_id = session.customer
        organization.stripe_subscription_id = stripe_subscription.id
        organization.subscription_status = stripe_subscription.status
        await db.commit()

    async def handle_subscription_updated(
        self,
        db: AsyncSession,
        stripe_subscription: stripe.Subscription,
    ) -> None:
        """Handle customer.subscription.updated webhook event."""
        organization = await self.get_by_subscription(db, stripe_subscription.id)
        if not organization:
            return

        organization.subscription_status = stripe_subscription.status
        await db.commit()

    async def handle_subscription_deleted(
        self,
        db: AsyncSession,
        stripe_subscription: stripe.Subscription,
    ) -> None:
        """Handle customer.subscription.deleted webhook event."""
        organization = await self.get_by_subscription(db, stripe_subscription.id)
        if not organization:
            return

        organization.subscription_status = SubscriptionStatus.CANCELED.value
        await db.commit()

    async def handle_payment_failed(
        self,
        db: AsyncSession,
        invoice: stripe.Invoice,
    ) -> None:
        """Handle invoice.payment_failed webhook event."""
        subscription_id = invoice.get("subscription")
        if not subscription_id:
            return

        organization = await self.get_by_subscription(db, subscription_id)
        if organization:
            organization.subscription_status = SubscriptionStatus.PAST_DUE.value
            await db.commit()

    async def check_session(self, db: AsyncSession, session_id: str) -> dict:
        """Resync an organization's status from a finished checkout session.

        Returns:
            dict with the session's payment and subscription status
        """
        session = stripe.checkout.Session.retrieve(session_id)
        subscription_status = None

        if session.subscription:
            stripe_subscription = stripe.Subscription.retrieve(session.subscription)
            subscription_status = stripe_subscription.status

            organization = await self.get_by_subscription(db, session.subscription)
            if organization and organization.subscription_status != subscription_status:
                organization.subscription_status = subscription_status
                await db.commit()
                logger.info(
                    f"Organization {organization.id} status resynced to {subscription_status}"
                )

        return {
            "id": session.id,
            "payment_status": session.payment_status,
            "subscription_status": subscription_status,
        }


# Global instance
stripe_service = StripeService()
