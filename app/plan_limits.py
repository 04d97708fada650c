"""
Plan limits and utilities for subscription-based restrictions.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from .auth import BusinessContext, get_business_context
from .config import STRIPE_PRICE_IDS_BASICO, STRIPE_PRICE_IDS_PRO
from .models import Business, Customer, Order, Recipe

logger = logging.getLogger(__name__)

FREE = "free"
BASICO = "basico"
PRO = "pro"
VITALICIO = "vitalicio"

# None means unlimited
PLAN_LIMITS = {
    FREE: {
        "max_orders_per_month": 10,
        "max_customers": 20,
        "max_recipes": 5,
        "advanced_analytics": False,
        "multiple_users": False,
        "priority_support": False,
        "custom_integrations": False,
        "quote_calculator": False,
    },
    BASICO: {
        "max_orders_per_month": 50,
        "max_customers": 30,
        "max_recipes": 5,
        "advanced_analytics": False,
        "multiple_users": False,
        "priority_support": False,
        "custom_integrations": False,
        "quote_calculator": False,
    },
    PRO: {
        "max_orders_per_month": None,
        "max_customers": None,
        "max_recipes": None,
        "advanced_analytics": True,
        "multiple_users": True,
        "priority_support": True,
        "custom_integrations": True,
        "quote_calculator": True,
    },
    VITALICIO: {
        "max_orders_per_month": None,
        "max_customers": None,
        "max_recipes": None,
        "advanced_analytics": True,
        "multiple_users": True,
        "priority_support": True,
        "custom_integrations": True,
        "quote_calculator": True,
    },
}

PLAN_FEATURES = [
    "advanced_analytics",
    "multiple_users",
    "priority_support",
    "custom_integrations",
    "quote_calculator",
]

ACTIVE_SUBSCRIPTION_STATUSES = {"active", "trialing"}


def _split_ids(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def get_price_plan_map() -> dict[str, str]:
    """Map each configured Stripe price ID to its plan"""
    mapping = {price_id: BASICO for price_id in _split_ids(STRIPE_PRICE_IDS_BASICO)}
    mapping.update({price_id: PRO for price_id in _split_ids(STRIPE_PRICE_IDS_PRO)})
    return mapping


def resolve_plan(
    price_id: Optional[str], is_lifetime: bool = False, subscription_status: Optional[str] = None
) -> str:
    """
    Resolve the plan of a business from its subscription fields.
    Unknown prices and inactive subscriptions fall back to the free plan.
    """
    if is_lifetime:
        return VITALICIO

    if subscription_status in ACTIVE_SUBSCRIPTION_STATUSES and price_id:
        plan = get_price_plan_map().get(price_id)
        if plan:
            return plan
        logger.warning(f"⚠️ Unknown Stripe price {price_id}, falling back to free plan")

    return FREE


def get_business_plan(business: Business) -> str:
    return resolve_plan(business.stripe_price_id, business.is_lifetime, business.subscription_status)


def get_plan_config(business: Business) -> dict:
    return PLAN_LIMITS[get_business_plan(business)]


def has_feature(business: Business, feature: str) -> bool:
    return bool(get_plan_config(business).get(feature))


def _month_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = datetime(now.year, now.month, 1)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1)
    else:
        end = datetime(now.year, now.month + 1, 1)
    return start, end


def get_usage(business: Business, db: Session) -> dict:
    """Current counts measured against the plan limits"""
    start, end = _month_bounds(datetime.utcnow())
    return {
        "customers": db.query(Customer).filter(Customer.business_id == business.id).count(),
        "recipes": db.query(Recipe).filter(Recipe.business_id == business.id).count(),
        "orders_this_month": db.query(Order)
        .filter(
            Order.business_id == business.id,
            Order.order_date >= start,
            Order.order_date < end,
        )
        .count(),
    }


def _check_limit(limit: Optional[int], current: int, label: str, plan: str) -> tuple:
    if limit is None or current < limit:
        return (True, None)
    return (
        False,
        f"You have reached the {label} limit of your {plan} plan ({limit}). "
        "Upgrade your plan to add more.",
    )


def can_add_customer(business: Business, db: Session) -> tuple:
    """
    Check if the business can add another customer.
    Returns (can_add, error_message).
    """
    plan = get_business_plan(business)
    current = db.query(Customer).filter(Customer.business_id == business.id).count()
    return _check_limit(PLAN_LIMITS[plan]["max_customers"], current, "customer", plan)


def can_add_recipe(business: Business, db: Session) -> tuple:
    plan = get_business_plan(business)
    current = db.query(Recipe).filter(Recipe.business_id == business.id).count()
    return _check_limit(PLAN_LIMITS[plan]["max_recipes"], current, "recipe", plan)


def can_add_order(business: Business, db: Session) -> tuple:
    """Monthly order limit, counted over orders created this calendar month"""
    plan = get_business_plan(business)
    current = get_usage(business, db)["orders_this_month"]
    return _check_limit(PLAN_LIMITS[plan]["max_orders_per_month"], current, "monthly order", plan)


def require_feature(feature: str, base_dependency=get_business_context):
    """
    Build a dependency that rejects businesses whose plan lacks `feature` with 402.
    `base_dependency` lets callers stack a role check underneath.
    """

    async def feature_checker(ctx: BusinessContext = Depends(base_dependency)) -> BusinessContext:
        if ctx.user.is_super_admin or has_feature(ctx.business, feature):
            return ctx
        plan = get_business_plan(ctx.business)
        logger.warning(f"⚠️ Business {ctx.business.id} on plan {plan} tried to use {feature}")
        raise HTTPException(
            status_code=402,
            detail="Your current plan does not include this feature. Please upgrade.",
            headers={"X-Plan-Required": "true"},
        )

    return feature_checker
