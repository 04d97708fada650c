"""Customer service - Business logic for customer operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, Customer
from ...plan_limits import can_add_customer
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def list_customers(
        self, business: Business, search: Optional[str], offset: int, limit: int
    ) -> tuple[list[Customer], Optional[int], int]:
        """Returns (customers, new_offset, total); new_offset is None on the last page"""
        customers, total = self.repo.list_customers(self.db, business.id, search, offset, limit)
        new_offset = offset + len(customers) if offset + len(customers) < total else None
        return customers, new_offset, total

    def get_customer(self, customer_id: int, business: Business) -> Customer:
        customer = self.repo.get_customer_by_id(self.db, customer_id, business.id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def create_customer(self, data: CustomerCreate, business: Business) -> Customer:
        logger.info(f"📥 Creating customer for business_id: {business.id}")

        can_add, error_message = can_add_customer(business, self.db)
        if not can_add:
            logger.warning(f"⚠️ Business {business.id} reached customer limit")
            raise HTTPException(status_code=403, detail=error_message)

        return self.repo.create_customer(
            self.db,
            business.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            instagram_handle=data.instagramHandle,
            notes=data.notes,
        )

    def update_customer(self, customer_id: int, data: CustomerUpdate, business: Business) -> Customer:
        customer = self.get_customer(customer_id, business)

        fields = data.model_dump(exclude_unset=True)
        updates = {}
        if "name" in fields and data.name is not None:
            updates["name"] = data.name
        if "email" in fields:
            updates["email"] = data.email
        if "phone" in fields:
            updates["phone"] = data.phone
        if "instagramHandle" in fields:
            updates["instagram_handle"] = data.instagramHandle
        if "notes" in fields:
            updates["notes"] = data.notes

        return self.repo.update_customer(self.db, customer, **updates)

    def delete_customer(self, customer_id: int, business: Business) -> dict:
        customer = self.get_customer(customer_id, business)

        order_count = self.repo.count_orders(self.db, customer.id)
        if order_count:
            raise HTTPException(
                status_code=409,
                detail=f"Customer has {order_count} order(s). Delete or reassign them first.",
            )

        self.repo.delete_customer(self.db, customer)
        logger.info(f"🗑️ Customer {customer_id} deleted from business {business.id}")
        return {"message": "Customer deleted"}
