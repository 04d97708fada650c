import logging
from typing import List, Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import BusinessContext, get_business_context
from ..database import get_db
from ..models import Customer, IngredientPrice, Order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])

LIMIT_PER_TYPE = 10


class SearchResult(BaseModel):
    id: int
    type: Literal["customer", "ingredient", "order"]
    title: str
    description: Optional[str] = None
    url: str


class SearchResponse(BaseModel):
    results: List[SearchResult]


@router.get("", response_model=SearchResponse)
async def global_search(
    q: Optional[str] = Query(None),
    ctx: BusinessContext = Depends(get_business_context),
    db: Session = Depends(get_db),
):
    """Search orders, customers and ingredients of the active business"""
    term = (q or "").strip()
    if not term:
        return SearchResponse(results=[])

    pattern = f"%{term}%"
    business_id = ctx.business.id
    results: list[SearchResult] = []

    orders = (
        db.query(Order, Customer.name)
        .join(Customer, Order.customer_id == Customer.id)
        .filter(
            Order.business_id == business_id,
            or_(
                Customer.name.ilike(pattern),
                Order.description.ilike(pattern),
                Order.notes.ilike(pattern),
                Order.flavor.ilike(pattern),
            ),
        )
        .order_by(Order.business_order_number.desc())
        .limit(LIMIT_PER_TYPE)
        .all()
    )
    results.extend(
        SearchResult(
            id=order.id,
            type="order",
            title=order.description or f"Pedido #{order.business_order_number}",
            description=customer_name,
            url=f"/pedidos/{order.id}",
        )
        for order, customer_name in orders
    )

    customers = (
        db.query(Customer)
        .filter(
            Customer.business_id == business_id,
            or_(
                Customer.name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
            ),
        )
        .order_by(Customer.name.asc())
        .limit(LIMIT_PER_TYPE)
        .all()
    )
    results.extend(
        SearchResult(
            id=c.id,
            type="customer",
            title=c.name,
            description=c.email,
            url=f"/clientes?q={quote(c.name)}",
        )
        for c in customers
    )

    ingredients = (
        db.query(IngredientPrice)
        .filter(
            IngredientPrice.business_id == business_id,
            or_(IngredientPrice.name.ilike(pattern), IngredientPrice.supplier.ilike(pattern)),
        )
        .order_by(IngredientPrice.name.asc())
        .limit(LIMIT_PER_TYPE)
        .all()
    )
    results.extend(
        SearchResult(
            id=i.id,
            type="ingredient",
            title=i.name,
            description=f"Unidad: {i.unit}",
            url=f"/ajustes#ingredient-{i.id}",
        )
        for i in ingredients
    )

    # Grouped by type for the command palette
    results.sort(key=lambda r: r.type)
    return SearchResponse(results=results)


__all__ = ["router", "global_search"]
