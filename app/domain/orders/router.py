"""Order router - FastAPI endpoints for order operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, require_roles
from ...database import get_db
from ...models import Order
from .schemas import (
    OrderCreate,
    OrderHistoryEntry,
    OrderImage,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderStatusValue,
    OrderUpdate,
    PaymentStatusUpdate,
)
from .service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

WRITE_ROLES = ("OWNER", "ADMIN", "EDITOR")


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db)


def to_order_response(o: Order) -> OrderResponse:
    return OrderResponse(
        id=o.id,
        businessOrderNumber=o.business_order_number,
        customerId=o.customer_id,
        customerName=o.customer.name if o.customer else None,
        description=o.description,
        amount=o.amount,
        orderDate=o.order_date,
        deliveryDate=o.delivery_date,
        orderStatus=o.order_status,
        productType=o.product_type,
        customizationDetails=o.customization_details,
        quantity=o.quantity,
        sizeOrWeight=o.size_or_weight,
        flavor=o.flavor,
        allergyInformation=o.allergy_information,
        totalPrice=o.total_price,
        depositAmount=o.deposit_amount or 0,
        paymentStatus=o.payment_status,
        paymentMethod=o.payment_method,
        notes=o.notes,
        orderHistory=[OrderHistoryEntry(**h) for h in (o.order_history or [])],
        images=[OrderImage(**img) for img in (o.images or [])],
        googleCalendarEventId=o.google_calendar_event_id,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=OrderListResponse)
async def list_orders(
    q: Optional[str] = Query(None),
    status: Optional[OrderStatusValue] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    ctx: BusinessContext = Depends(get_business_context),
    service: OrderService = Depends(get_order_service),
):
    """List orders, newest first, filtered by status or free text"""
    orders, new_offset, total = service.list_orders(ctx.business, q, status, offset, limit)
    return OrderListResponse(
        orders=[to_order_response(o) for o in orders],
        newOffset=new_offset,
        totalOrders=total,
    )


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    data: OrderCreate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: OrderService = Depends(get_order_service),
):
    """Create an order, optionally adding the delivery to Google Calendar"""
    order = await service.create_order(data, ctx.business, ctx.user)
    return to_order_response(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    ctx: BusinessContext = Depends(get_business_context),
    service: OrderService = Depends(get_order_service),
):
    return to_order_response(service.get_order(order_id, ctx.business))


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    data: OrderUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: OrderService = Depends(get_order_service),
):
    """Update an order"""
    order = await service.update_order(order_id, data, ctx.business, ctx.user)
    return to_order_response(order)


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: OrderService = Depends(get_order_service),
):
    """Delete an order and its calendar event"""
    return await service.delete_order(order_id, ctx.business, ctx.user)


# ============================================================================
# STATUS SHORTCUTS
# ============================================================================


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_status(order_id, data.orderStatus, ctx.business, ctx.user)
    return to_order_response(order)


@router.patch("/{order_id}/payment-status", response_model=OrderResponse)
async def update_payment_status(
    order_id: int,
    data: PaymentStatusUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_payment_status(order_id, data, ctx.business)
    return to_order_response(order)


__all__ = [
    "router",
    "list_orders",
    "create_order",
    "get_order",
    "update_order",
    "delete_order",
    "update_order_status",
    "update_payment_status",
]
