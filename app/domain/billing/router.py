"""Billing router - Stripe checkout, portal, webhook and plan overview"""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, get_current_user, require_roles
from ...config import FRONTEND_URL
from ...database import get_db
from ...models import User
from ...plan_limits import PLAN_FEATURES, PLAN_LIMITS, get_business_plan, get_usage
from ...rate_limiter import create_rate_limiter
from .schemas import (
    CheckoutRequest,
    CheckoutSessionResponse,
    CheckoutSessionStatusResponse,
    PlanLimits,
    PlanUsage,
    PortalSessionResponse,
    SubscriptionResponse,
)
from .stripe_service import StripeNotConfiguredError, StripeService, stripe_service
from .webhook_service import StripeWebhookService, get_field

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Billing"])

BILLING_ROLES = ("OWNER", "ADMIN")

webhook_rate_limit = create_rate_limiter(limit=120, window_seconds=60, key_prefix="stripe_webhook")


def get_stripe_service() -> StripeService:
    """Dependency injection for the Stripe singleton"""
    return stripe_service


def _ensure_available(service: StripeService) -> None:
    if not service.is_available():
        raise HTTPException(status_code=503, detail="Payments are not configured")


# ============================================================================
# CHECKOUT AND PORTAL
# ============================================================================


@router.post("/stripe/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    data: CheckoutRequest,
    ctx: BusinessContext = Depends(require_roles(*BILLING_ROLES)),
    db: Session = Depends(get_db),
    service: StripeService = Depends(get_stripe_service),
):
    """Start a subscription checkout, creating the Stripe customer on first use"""
    _ensure_available(service)
    business = ctx.business
    metadata = {"cakelyBusinessId": str(business.id), "cakelyUserId": str(ctx.user.id)}

    try:
        if not business.stripe_customer_id:
            logger.info(f"💳 Creating Stripe customer for business {business.id}")
            customer = await service.create_customer(ctx.user.email, business.name, metadata)
            business.stripe_customer_id = customer["id"]
            db.commit()

        base = FRONTEND_URL.rstrip("/")
        session = await service.create_checkout_session(
            customer_id=business.stripe_customer_id,
            price_id=data.priceId,
            success_url=f"{base}/pago/exito?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base}/pago/cancelado",
            metadata=metadata,
        )
    except (stripe.StripeError, StripeNotConfiguredError) as e:
        logger.error(f"❌ Stripe checkout failed for business {business.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create checkout session") from e

    logger.info(f"✅ Checkout session {session['id']} created for price {data.priceId}")
    return CheckoutSessionResponse(sessionId=session["id"], url=session["url"])


@router.post("/stripe/create-portal-session", response_model=PortalSessionResponse)
async def create_portal_session(
    ctx: BusinessContext = Depends(require_roles(*BILLING_ROLES)),
    service: StripeService = Depends(get_stripe_service),
):
    _ensure_available(service)
    if not ctx.business.stripe_customer_id:
        raise HTTPException(status_code=404, detail="No Stripe customer found for this business")

    try:
        portal = await service.create_portal_session(
            ctx.business.stripe_customer_id,
            return_url=f"{FRONTEND_URL.rstrip('/')}/ajustes/suscripcion?from_portal=true",
        )
    except (stripe.StripeError, StripeNotConfiguredError) as e:
        logger.error(f"❌ Stripe portal failed for business {ctx.business.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create portal session") from e

    return PortalSessionResponse(url=portal["url"])


@router.get("/stripe/checkout-session-status", response_model=CheckoutSessionStatusResponse)
async def checkout_session_status(
    sessionId: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    service: StripeService = Depends(get_stripe_service),
):
    _ensure_available(service)
    try:
        session = await service.retrieve_checkout_session(sessionId)
    except (stripe.StripeError, StripeNotConfiguredError) as e:
        logger.error(f"❌ Could not retrieve checkout session {sessionId}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve checkout session") from e

    # customer and subscription are expanded objects
    subscription = get_field(session, "subscription")
    return CheckoutSessionStatusResponse(
        status=get_field(session, "status"),
        payment_status=get_field(session, "payment_status"),
        customer_email=get_field(get_field(session, "customer"), "email")
        or get_field(get_field(session, "customer_details"), "email"),
        subscription_id=subscription if isinstance(subscription, str) else get_field(subscription, "id"),
    )


# ============================================================================
# WEBHOOK
# ============================================================================


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    _: None = Depends(webhook_rate_limit),
    db: Session = Depends(get_db),
    service: StripeService = Depends(get_stripe_service),
):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        logger.error("❌ Stripe webhook without signature header")
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    try:
        event = service.construct_event(payload, signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.error(f"❌ Stripe webhook verification failed: {e}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e}") from e

    try:
        await StripeWebhookService(db, service).handle_event(event)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error processing Stripe event {get_field(event, 'type')} ({get_field(event, 'id')}): {e}")
        raise HTTPException(status_code=500, detail="Error processing webhook") from e

    return {"received": True}


# ============================================================================
# PLAN OVERVIEW
# ============================================================================


@router.get("/billing/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    ctx: BusinessContext = Depends(get_business_context),
    db: Session = Depends(get_db),
):
    """Resolved plan with its feature flags, limits and current usage"""
    business = ctx.business
    plan = get_business_plan(business)
    config = PLAN_LIMITS[plan]
    usage = get_usage(business, db)

    return SubscriptionResponse(
        plan=plan,
        subscriptionStatus=business.subscription_status,
        stripePriceId=business.stripe_price_id,
        currentPeriodEnd=business.stripe_current_period_end,
        isLifetime=bool(business.is_lifetime),
        features={feature: bool(config.get(feature)) for feature in PLAN_FEATURES},
        usage=PlanUsage(
            customers=usage["customers"],
            recipes=usage["recipes"],
            ordersThisMonth=usage["orders_this_month"],
        ),
        limits=PlanLimits(
            maxOrdersPerMonth=config["max_orders_per_month"],
            maxCustomers=config["max_customers"],
            maxRecipes=config["max_recipes"],
        ),
    )


__all__ = [
    "router",
    "webhook_rate_limit",
    "get_stripe_service",
    "create_checkout_session",
    "create_portal_session",
    "checkout_session_status",
    "stripe_webhook",
    "get_subscription",
]
