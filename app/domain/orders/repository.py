"""Order repository - Database operations for orders"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Customer, Order


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def list_orders(
        db: Session,
        business_id: int,
        search: Optional[str],
        status: Optional[str],
        offset: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        query = (
            db.query(Order)
            .join(Customer, Customer.id == Order.customer_id)
            .options(joinedload(Order.customer))
            .filter(Order.business_id == business_id)
        )

        if status:
            query = query.filter(Order.order_status == status)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(pattern),
                    Order.description.ilike(pattern),
                    Order.notes.ilike(pattern),
                    Order.flavor.ilike(pattern),
                )
            )

        total = query.count()
        orders = (
            query.order_by(Order.business_order_number.desc()).offset(offset).limit(limit).all()
        )
        return orders, total

    @staticmethod
    def get_order_by_id(db: Session, order_id: int, business_id: int) -> Optional[Order]:
        return (
            db.query(Order)
            .options(joinedload(Order.customer))
            .filter(Order.id == order_id, Order.business_id == business_id)
            .first()
        )

    @staticmethod
    def next_order_number(db: Session, business_id: int) -> int:
        """Per-business sequence: highest existing number plus one"""
        current = (
            db.query(func.max(Order.business_order_number))
            .filter(Order.business_id == business_id)
            .scalar()
        )
        return (current or 0) + 1

    @staticmethod
    def create_order(db: Session, business_id: int, **order_data) -> Order:
        order = Order(business_id=business_id, **order_data)
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def update_order(db: Session, order: Order, **updates) -> Order:
        for key, value in updates.items():
            if hasattr(order, key):
                setattr(order, key, value)

        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def delete_order(db: Session, order: Order) -> None:
        db.delete(order)
        db.commit()
