"""Billing domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CheckoutRequest(BaseModel):
    """Schema for creating a checkout session"""

    priceId: str

    @field_validator("priceId")
    @classmethod
    def validate_price_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("priceId is required")
        return v


class CheckoutSessionResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None


class PortalSessionResponse(BaseModel):
    url: str


class CheckoutSessionStatusResponse(BaseModel):
    status: Optional[str] = None
    payment_status: Optional[str] = None
    customer_email: Optional[str] = None
    subscription_id: Optional[str] = None


class PlanUsage(BaseModel):
    customers: int
    recipes: int
    ordersThisMonth: int


class PlanLimits(BaseModel):
    """None means unlimited"""

    maxOrdersPerMonth: Optional[int] = None
    maxCustomers: Optional[int] = None
    maxRecipes: Optional[int] = None


class SubscriptionResponse(BaseModel):
    plan: str
    subscriptionStatus: Optional[str] = None
    stripePriceId: Optional[str] = None
    currentPeriodEnd: Optional[datetime] = None
    isLifetime: bool = False
    features: dict[str, bool]
    usage: PlanUsage
    limits: PlanLimits
