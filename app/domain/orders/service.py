"""Order service - Business logic for order operations"""

import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Business, Customer, Order, User
from ...plan_limits import can_add_order
from ...services.google_calendar_service import (
    create_delivery_event,
    delete_delivery_event,
    update_delivery_event,
)
from ...shared.validators import parse_time_hhmm
from .repository import OrderRepository
from .schemas import OrderCreate, OrderUpdate, PaymentStatusUpdate

logger = logging.getLogger(__name__)

# Concurrent creates can race for the same order number
ORDER_NUMBER_ATTEMPTS = 3

# Request field -> column
UPDATABLE_FIELDS = {
    "description": "description",
    "amount": "amount",
    "productType": "product_type",
    "customizationDetails": "customization_details",
    "quantity": "quantity",
    "sizeOrWeight": "size_or_weight",
    "flavor": "flavor",
    "allergyInformation": "allergy_information",
    "totalPrice": "total_price",
    "paymentStatus": "payment_status",
    "paymentMethod": "payment_method",
    "depositAmount": "deposit_amount",
    "notes": "notes",
}

CLEARABLE_FIELDS = {"customizationDetails", "sizeOrWeight", "flavor", "allergyInformation", "notes"}


def combine_delivery_date_and_time(delivery_date: Optional[date], delivery_time: Optional[str]) -> Optional[datetime]:
    """Delivery moment from a date and an optional "HH:MM"; midnight when no time is given"""
    if not delivery_date:
        return None
    return datetime.combine(delivery_date, parse_time_hhmm(delivery_time) or time(0, 0))


def history_entry(status: str, user: User) -> dict:
    return {"status": status, "timestamp": datetime.utcnow().isoformat(), "userId": user.id}


class OrderService:
    """Service layer for order business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository()

    def list_orders(
        self, business: Business, search: Optional[str], status: Optional[str], offset: int, limit: int
    ) -> tuple[list[Order], Optional[int], int]:
        orders, total = self.repo.list_orders(self.db, business.id, search, status, offset, limit)
        new_offset = offset + len(orders) if offset + len(orders) < total else None
        return orders, new_offset, total

    def get_order(self, order_id: int, business: Business) -> Order:
        order = self.repo.get_order_by_id(self.db, order_id, business.id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    async def create_order(self, data: OrderCreate, business: Business, user: User) -> Order:
        logger.info(f"📥 Creating order for business_id: {business.id}")

        customer = (
            self.db.query(Customer)
            .filter(Customer.id == data.customerId, Customer.business_id == business.id)
            .first()
        )
        if not customer:
            raise HTTPException(status_code=400, detail="Customer does not belong to this business")

        can_add, error_message = can_add_order(business, self.db)
        if not can_add:
            logger.warning(f"⚠️ Business {business.id} reached monthly order limit")
            raise HTTPException(status_code=403, detail=error_message)

        delivery_date = combine_delivery_date_and_time(data.deliveryDate, data.deliveryTime)
        order_data = {
            "customer_id": customer.id,
            "description": data.description,
            "amount": data.amount,
            "delivery_date": delivery_date,
            "order_status": "Pendiente",
            "product_type": data.productType,
            "customization_details": data.customizationDetails,
            "quantity": data.quantity,
            "size_or_weight": data.sizeOrWeight,
            "flavor": data.flavor,
            "allergy_information": data.allergyInformation,
            "total_price": data.totalPrice,
            "deposit_amount": data.depositAmount,
            "payment_status": data.paymentStatus,
            "payment_method": data.paymentMethod,
            "notes": data.notes,
            "order_history": [history_entry("Pendiente", user)],
            "images": [],
        }

        order = None
        for attempt in range(ORDER_NUMBER_ATTEMPTS):
            try:
                order = self.repo.create_order(
                    self.db,
                    business.id,
                    business_order_number=self.repo.next_order_number(self.db, business.id),
                    **order_data,
                )
                break
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Order number collision for business {business.id} (attempt {attempt + 1})")
                if attempt == ORDER_NUMBER_ATTEMPTS - 1:
                    raise HTTPException(status_code=409, detail="Could not allocate an order number, please retry") from e

        logger.info(f"✅ Order #{order.business_order_number} created for business {business.id}")

        if data.createCalendarEvent and delivery_date:
            event_id = await create_delivery_event(user, order, self.db)
            if event_id:
                order = self.repo.update_order(self.db, order, google_calendar_event_id=event_id)

        return order

    async def update_order(self, order_id: int, data: OrderUpdate, business: Business, user: User) -> Order:
        order = self.get_order(order_id, business)
        fields = data.model_dump(exclude_unset=True)

        updates = {}
        for field, column in UPDATABLE_FIELDS.items():
            if field not in fields:
                continue
            if fields[field] is None and field not in CLEARABLE_FIELDS:
                continue
            updates[column] = fields[field]

        if "images" in fields:
            updates["images"] = [img.model_dump() for img in (data.images or [])]

        delivery_changed = False
        if "deliveryDate" in fields or "deliveryTime" in fields:
            new_date = data.deliveryDate if "deliveryDate" in fields else (
                order.delivery_date.date() if order.delivery_date else None
            )
            if "deliveryTime" in fields:
                new_time = data.deliveryTime
            else:
                new_time = order.delivery_date.strftime("%H:%M") if order.delivery_date else None
            new_delivery = combine_delivery_date_and_time(new_date, new_time)
            if new_delivery != order.delivery_date:
                updates["delivery_date"] = new_delivery
                delivery_changed = True

        if data.orderStatus and data.orderStatus != order.order_status:
            updates["order_status"] = data.orderStatus
            updates["order_history"] = list(order.order_history or []) + [
                history_entry(data.orderStatus, user)
            ]

        order = self.repo.update_order(self.db, order, **updates)

        if delivery_changed and order.google_calendar_event_id:
            if order.delivery_date:
                await update_delivery_event(user, order, self.db)
            else:
                await delete_delivery_event(user, order.google_calendar_event_id, self.db)
                order = self.repo.update_order(self.db, order, google_calendar_event_id=None)

        return order

    def update_status(self, order_id: int, status: str, business: Business, user: User) -> Order:
        order = self.get_order(order_id, business)
        if status == order.order_status:
            return order
        return self.repo.update_order(
            self.db,
            order,
            order_status=status,
            order_history=list(order.order_history or []) + [history_entry(status, user)],
        )

    def update_payment_status(self, order_id: int, data: PaymentStatusUpdate, business: Business) -> Order:
        order = self.get_order(order_id, business)
        updates = {"payment_status": data.paymentStatus}
        if data.depositAmount is not None:
            updates["deposit_amount"] = data.depositAmount
        return self.repo.update_order(self.db, order, **updates)

    async def delete_order(self, order_id: int, business: Business, user: User) -> dict:
        order = self.get_order(order_id, business)
        event_id = order.google_calendar_event_id

        self.repo.delete_order(self.db, order)
        logger.info(f"🗑️ Order {order_id} deleted from business {business.id}")

        if event_id:
            await delete_delivery_event(user, event_id, self.db)

        return {"message": "Order deleted"}
