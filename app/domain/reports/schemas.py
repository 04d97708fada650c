"""Report schemas"""

from pydantic import BaseModel


class OperationalExpenses(BaseModel):
    rent: float
    other: float
    total: float


class MonthlyProfitResponse(BaseModel):
    month: str
    revenue: float
    grossProfit: float
    operationalExpenses: OperationalExpenses
    netProfit: float
    paidOrders: int
    depositOrders: int
