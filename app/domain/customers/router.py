"""Customer router - FastAPI endpoints for customer operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, require_roles
from ...database import get_db
from ...models import Customer
from .schemas import (
    CustomerCreate,
    CustomerListResponse,
    CustomerOrderSummary,
    CustomerResponse,
    CustomerUpdate,
)
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])

WRITE_ROLES = ("OWNER", "ADMIN", "EDITOR")


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


def to_customer_response(c: Customer, include_orders: bool = False) -> CustomerResponse:
    orders = None
    if include_orders:
        orders = [
            CustomerOrderSummary(
                id=o.id,
                businessOrderNumber=o.business_order_number,
                description=o.description,
                deliveryDate=o.delivery_date,
                orderStatus=o.order_status,
                paymentStatus=o.payment_status,
                totalPrice=o.total_price,
            )
            for o in sorted(c.orders, key=lambda o: o.business_order_number, reverse=True)
        ]
    return CustomerResponse(
        id=c.id,
        name=c.name,
        email=c.email,
        phone=c.phone,
        instagramHandle=c.instagram_handle,
        notes=c.notes,
        registrationDate=c.registration_date,
        orders=orders,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    ctx: BusinessContext = Depends(get_business_context),
    service: CustomerService = Depends(get_customer_service),
):
    """List customers of the active business, searchable by name, email or phone"""
    customers, new_offset, total = service.list_customers(ctx.business, search, offset, limit)
    return CustomerListResponse(
        customers=[to_customer_response(c) for c in customers],
        newOffset=new_offset,
        totalCustomers=total,
    )


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: CustomerService = Depends(get_customer_service),
):
    """Create a new customer"""
    return to_customer_response(service.create_customer(data, ctx.business))


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    ctx: BusinessContext = Depends(get_business_context),
    service: CustomerService = Depends(get_customer_service),
):
    """Get a customer together with their orders"""
    return to_customer_response(service.get_customer(customer_id, ctx.business), include_orders=True)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: CustomerService = Depends(get_customer_service),
):
    """Update a customer"""
    return to_customer_response(service.update_customer(customer_id, data, ctx.business))


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    ctx: BusinessContext = Depends(require_roles("OWNER", "ADMIN")),
    service: CustomerService = Depends(get_customer_service),
):
    """Delete a customer without orders"""
    return service.delete_customer(customer_id, ctx.business)


__all__ = [
    "router",
    "list_customers",
    "create_customer",
    "get_customer",
    "update_customer",
    "delete_customer",
]
