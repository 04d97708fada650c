"""Quote router - FastAPI endpoints for the pricing calculator"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import BusinessContext
from ...database import get_db
from ...plan_limits import require_feature
from .schemas import QuoteRequest, QuoteResponse
from .service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


@router.post("/calculate", response_model=QuoteResponse)
async def calculate_quote(
    data: QuoteRequest,
    ctx: BusinessContext = Depends(require_feature("quote_calculator")),
    service: QuoteService = Depends(get_quote_service),
):
    """Calculate cost breakdown and recommended price for a recipe"""
    return service.calculate(data, ctx.business)


__all__ = ["router", "calculate_quote"]
