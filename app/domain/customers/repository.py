"""Customer repository - Database operations for customers"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Customer, Order


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def list_customers(
        db: Session, business_id: int, search: Optional[str], offset: int, limit: int
    ) -> tuple[list[Customer], int]:
        """Page of customers plus the total matching count"""
        query = db.query(Customer).filter(Customer.business_id == business_id)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.email.ilike(pattern),
                    Customer.phone.ilike(pattern),
                )
            )

        total = query.count()
        customers = query.order_by(Customer.name.asc(), Customer.id.asc()).offset(offset).limit(limit).all()
        return customers, total

    @staticmethod
    def get_customer_by_id(db: Session, customer_id: int, business_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.business_id == business_id)
            .first()
        )

    @staticmethod
    def create_customer(db: Session, business_id: int, **customer_data) -> Customer:
        customer = Customer(business_id=business_id, **customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        """Update a customer with provided fields"""
        for key, value in updates.items():
            if hasattr(customer, key):
                setattr(customer, key, value)

        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def count_orders(db: Session, customer_id: int) -> int:
        return db.query(Order).filter(Order.customer_id == customer_id).count()

    @staticmethod
    def delete_customer(db: Session, customer: Customer) -> None:
        db.delete(customer)
        db.commit()
