"""Stripe service - thin wrapper over the Stripe SDK"""

import logging
from typing import Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from ...config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET

logger = logging.getLogger(__name__)


class StripeNotConfiguredError(Exception):
    """Raised when a Stripe call is attempted without STRIPE_SECRET_KEY"""


class StripeService:
    """Service for Stripe API operations"""

    def __init__(self):
        self.api_key = STRIPE_SECRET_KEY
        self.webhook_secret = STRIPE_WEBHOOK_SECRET

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; billing endpoints will fail until configured")
        if not self.webhook_secret:
            logger.warning("STRIPE_WEBHOOK_SECRET not set; webhooks will be rejected")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> str:
        if not self.api_key:
            raise StripeNotConfiguredError("Stripe is not configured. Set STRIPE_SECRET_KEY.")
        return self.api_key

    async def create_customer(self, email: Optional[str], name: Optional[str], metadata: dict):
        return await run_in_threadpool(
            stripe.Customer.create,
            api_key=self._require_key(),
            email=email or None,
            name=name or None,
            metadata=metadata,
        )

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: dict,
    ):
        """Subscription-mode checkout; metadata is copied onto the subscription too"""
        return await run_in_threadpool(
            stripe.checkout.Session.create,
            api_key=self._require_key(),
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )

    async def create_portal_session(self, customer_id: str, return_url: str):
        return await run_in_threadpool(
            stripe.billing_portal.Session.create,
            api_key=self._require_key(),
            customer=customer_id,
            locale="es",
            return_url=return_url,
        )

    async def retrieve_checkout_session(self, session_id: str):
        return await run_in_threadpool(
            stripe.checkout.Session.retrieve,
            session_id,
            api_key=self._require_key(),
            expand=["subscription", "customer"],
        )

    async def retrieve_subscription(self, subscription_id: str):
        return await run_in_threadpool(
            stripe.Subscription.retrieve, subscription_id, api_key=self._require_key()
        )

    def construct_event(self, payload: bytes, signature: str):
        """
        Verify the Stripe-Signature header against the raw body.

        Raises:
            ValueError: webhook secret missing or payload malformed
            stripe.error.SignatureVerificationError: bad signature
        """
        if not self.webhook_secret:
            raise ValueError("STRIPE_WEBHOOK_SECRET not configured")
        return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)


# Singleton instance
stripe_service = StripeService()
