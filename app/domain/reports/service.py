"""
Report service - monthly profit.

Revenue counts the full price of paid orders plus the deposit already taken
on pending or partially paid orders, over orders dated within the month.
Operational expenses are the fixed monthly rent plus other overhead.
"""

import logging
from datetime import datetime

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from ...models import Business, BusinessSettings, Order

logger = logging.getLogger(__name__)

PAID = "Pagado"
DEPOSIT_STATUSES = ("Pendiente", "Parcial")


def next_month(start: datetime) -> datetime:
    if start.month == 12:
        return datetime(start.year + 1, 1, 1)
    return datetime(start.year, start.month + 1, 1)


class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def monthly_profit(self, business: Business, month_start: datetime) -> dict:
        month_end = next_month(month_start)

        revenue_expr = case(
            (Order.payment_status == PAID, Order.total_price),
            else_=Order.deposit_amount,
        )
        revenue, paid_orders, deposit_orders = (
            self.db.query(
                func.coalesce(func.sum(revenue_expr), 0.0),
                func.count(case((Order.payment_status == PAID, 1))),
                func.count(case((Order.payment_status != PAID, 1))),
            )
            .filter(
                Order.business_id == business.id,
                Order.order_date >= month_start,
                Order.order_date < month_end,
                or_(
                    Order.payment_status == PAID,
                    and_(Order.payment_status.in_(DEPOSIT_STATUSES), Order.deposit_amount > 0),
                ),
            )
            .one()
        )

        settings = (
            self.db.query(BusinessSettings)
            .filter(BusinessSettings.business_id == business.id)
            .first()
        )
        rent = float(settings.rent_monthly or 0) if settings else 0.0
        other = float(settings.other_monthly_overhead or 0) if settings else 0.0
        expenses = rent + other
        revenue = round(float(revenue or 0), 2)

        logger.info(
            f"📊 Monthly profit for business {business.id} ({month_start:%Y-%m}): "
            f"revenue={revenue}, expenses={expenses}"
        )
        return {
            "month": f"{month_start:%Y-%m}",
            "revenue": revenue,
            "grossProfit": revenue,
            "operationalExpenses": {"rent": rent, "other": other, "total": round(expenses, 2)},
            "netProfit": round(revenue - expenses, 2),
            "paidOrders": paid_orders,
            "depositOrders": deposit_orders,
        }
