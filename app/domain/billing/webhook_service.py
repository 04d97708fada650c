"""
Stripe webhook processing.

Every handler writes absolute values taken from Stripe (never increments), so
replaying the same event leaves the business in the same state.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import Business
from .stripe_service import StripeService

logger = logging.getLogger(__name__)

BUSINESS_ID_KEY = "cakelyBusinessId"


def get_field(obj: Any, key: str, default=None):
    """Read a key from a dict or StripeObject, treating missing and null alike"""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _to_datetime(timestamp: Optional[int]) -> Optional[datetime]:
    return datetime.utcfromtimestamp(int(timestamp)) if timestamp else None


def _first_item(subscription) -> Optional[Any]:
    items = get_field(get_field(subscription, "items"), "data", [])
    return items[0] if items else None


def _period_end(subscription, item) -> Optional[datetime]:
    # Newer API versions carry the period on the item, older ones on the subscription
    return _to_datetime(get_field(item, "current_period_end") or get_field(subscription, "current_period_end"))


def _business_id_from(metadata) -> Optional[int]:
    raw = get_field(metadata, BUSINESS_ID_KEY)
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.error(f"❌ Invalid {BUSINESS_ID_KEY} in metadata: {raw}")
        return None


def _invoice_subscription_id(invoice) -> Optional[str]:
    details = get_field(get_field(invoice, "parent"), "subscription_details")
    subscription = get_field(details, "subscription") or get_field(invoice, "subscription")
    if isinstance(subscription, str):
        return subscription
    return get_field(subscription, "id")


class StripeWebhookService:
    def __init__(self, db: Session, stripe_client: StripeService):
        self.db = db
        self.stripe = stripe_client

    def _load_business(self, business_id: Optional[int], event_type: str) -> Optional[Business]:
        if business_id is None:
            logger.warning(f"⚠️ {event_type}: no {BUSINESS_ID_KEY} in metadata, skipping")
            return None
        business = self.db.query(Business).filter(Business.id == business_id).first()
        if not business:
            logger.warning(f"⚠️ {event_type}: business {business_id} not found, skipping")
        return business

    async def handle_event(self, event: dict) -> None:
        event_type = get_field(event, "type")
        obj = get_field(get_field(event, "data"), "object", {})
        logger.info(f"📥 Stripe event {get_field(event, 'id')} ({event_type})")

        if event_type == "checkout.session.completed":
            await self._checkout_completed(obj)
        elif event_type == "invoice.paid":
            await self._invoice_paid(obj)
        elif event_type == "invoice.payment_failed":
            await self._invoice_payment_failed(obj)
        elif event_type == "customer.subscription.updated":
            self._subscription_updated(obj)
        elif event_type == "customer.subscription.deleted":
            self._subscription_deleted(obj)
        else:
            logger.info(f"Unhandled Stripe event type: {event_type}")

    async def _checkout_completed(self, session) -> None:
        subscription_id = get_field(session, "subscription")
        customer_id = get_field(session, "customer")
        if subscription_id and not isinstance(subscription_id, str):
            subscription_id = get_field(subscription_id, "id")
        if customer_id and not isinstance(customer_id, str):
            customer_id = get_field(customer_id, "id")
        business_id = _business_id_from(get_field(session, "metadata"))

        if get_field(session, "mode") != "subscription" or not subscription_id or not customer_id:
            logger.warning(
                f"⚠️ Checkout session {get_field(session, 'id')} not processed: "
                f"mode={get_field(session, 'mode')}, sub={subscription_id}, cust={customer_id}"
            )
            return

        business = self._load_business(business_id, "checkout.session.completed")
        if not business:
            return

        subscription = await self.stripe.retrieve_subscription(subscription_id)
        item = _first_item(subscription)
        if not item:
            logger.error(f"❌ Subscription {subscription_id} has no items")
            return

        business.stripe_subscription_id = subscription_id
        business.stripe_customer_id = customer_id
        business.stripe_price_id = get_field(get_field(item, "price"), "id")
        business.stripe_current_period_end = _period_end(subscription, item)
        business.subscription_status = get_field(subscription, "status")
        self.db.commit()
        logger.info(
            f"✅ Business {business.id} subscribed: {subscription_id} "
            f"({business.stripe_price_id}, {business.subscription_status})"
        )

    async def _invoice_paid(self, invoice) -> None:
        subscription_id = _invoice_subscription_id(invoice)
        billing_reason = get_field(invoice, "billing_reason", "")
        if (
            get_field(invoice, "status") != "paid"
            or not subscription_id
            or not billing_reason.startswith("subscription")
        ):
            logger.info(
                f"Invoice {get_field(invoice, 'id')} not processed: status={get_field(invoice, 'status')}, "
                f"sub={subscription_id}, reason={billing_reason}"
            )
            return

        subscription = await self.stripe.retrieve_subscription(subscription_id)
        business = self._load_business(
            _business_id_from(get_field(subscription, "metadata")), "invoice.paid"
        )
        if not business:
            return
        item = _first_item(subscription)
        if not item:
            logger.error(f"❌ Subscription {subscription_id} has no items")
            return

        business.stripe_current_period_end = _period_end(subscription, item)
        business.subscription_status = get_field(subscription, "status")
        self.db.commit()
        logger.info(f"🔄 Business {business.id} renewed until {business.stripe_current_period_end}")

    async def _invoice_payment_failed(self, invoice) -> None:
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return

        subscription = await self.stripe.retrieve_subscription(subscription_id)
        business = self._load_business(
            _business_id_from(get_field(subscription, "metadata")), "invoice.payment_failed"
        )
        if not business:
            return

        business.subscription_status = get_field(subscription, "status")
        self.db.commit()
        logger.warning(f"⚠️ Payment failed for business {business.id}: {business.subscription_status}")

    def _subscription_updated(self, subscription) -> None:
        business = self._load_business(
            _business_id_from(get_field(subscription, "metadata")), "customer.subscription.updated"
        )
        if not business:
            return
        item = _first_item(subscription)
        if not item:
            logger.error(f"❌ Subscription {get_field(subscription, 'id')} has no items")
            return

        business.stripe_price_id = get_field(get_field(item, "price"), "id")
        business.stripe_current_period_end = _period_end(subscription, item)
        business.subscription_status = get_field(subscription, "status")
        self.db.commit()

    def _subscription_deleted(self, subscription) -> None:
        business = self._load_business(
            _business_id_from(get_field(subscription, "metadata")), "customer.subscription.deleted"
        )
        if not business:
            return

        business.stripe_subscription_id = None
        business.stripe_price_id = None
        business.stripe_current_period_end = None
        business.subscription_status = "canceled"
        self.db.commit()
        logger.info(f"🛑 Subscription canceled for business {business.id}")
