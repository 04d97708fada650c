"""Report router"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import BusinessContext, require_roles
from ...database import get_db
from ...plan_limits import require_feature
from ...shared.validators import parse_month
from .schemas import MonthlyProfitResponse
from .service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


@router.get("/monthly-profit", response_model=MonthlyProfitResponse)
async def monthly_profit(
    month: str = Query(..., description="Month in YYYY-MM format"),
    ctx: BusinessContext = Depends(
        require_feature("advanced_analytics", base_dependency=require_roles("OWNER", "ADMIN"))
    ),
    service: ReportService = Depends(get_report_service),
):
    try:
        month_start = parse_month(month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return service.monthly_profit(ctx.business, month_start)


__all__ = ["router", "monthly_profit"]
