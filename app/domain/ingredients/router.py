"""Ingredient price router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, require_roles
from ...database import get_db
from ...models import IngredientPrice
from .schemas import IngredientPriceCreate, IngredientPriceResponse, IngredientPriceUpdate
from .service import IngredientPriceService

router = APIRouter(prefix="/ingredient-prices", tags=["Ingredient Prices"])

WRITE_ROLES = ("OWNER", "ADMIN", "EDITOR")


def get_ingredient_service(db: Session = Depends(get_db)) -> IngredientPriceService:
    return IngredientPriceService(db)


def to_ingredient_response(i: IngredientPrice) -> IngredientPriceResponse:
    return IngredientPriceResponse(
        id=i.id,
        name=i.name,
        unit=i.unit,
        pricePerUnit=i.price_per_unit,
        supplier=i.supplier,
        updatedAt=i.updated_at,
    )


@router.get("", response_model=list[IngredientPriceResponse])
async def list_ingredient_prices(
    q: Optional[str] = Query(None),
    ctx: BusinessContext = Depends(get_business_context),
    service: IngredientPriceService = Depends(get_ingredient_service),
):
    return [to_ingredient_response(i) for i in service.list_prices(ctx.business, q)]


@router.post("", response_model=IngredientPriceResponse, status_code=201)
async def create_ingredient_price(
    data: IngredientPriceCreate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: IngredientPriceService = Depends(get_ingredient_service),
):
    return to_ingredient_response(service.create_price(data, ctx.business))


@router.get("/{ingredient_id}", response_model=IngredientPriceResponse)
async def get_ingredient_price(
    ingredient_id: int,
    ctx: BusinessContext = Depends(get_business_context),
    service: IngredientPriceService = Depends(get_ingredient_service),
):
    return to_ingredient_response(service.get_price(ingredient_id, ctx.business))


@router.put("/{ingredient_id}", response_model=IngredientPriceResponse)
async def update_ingredient_price(
    ingredient_id: int,
    data: IngredientPriceUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: IngredientPriceService = Depends(get_ingredient_service),
):
    return to_ingredient_response(service.update_price(ingredient_id, data, ctx.business))


@router.delete("/{ingredient_id}")
async def delete_ingredient_price(
    ingredient_id: int,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: IngredientPriceService = Depends(get_ingredient_service),
):
    return service.delete_price(ingredient_id, ctx.business)


__all__ = [
    "router",
    "list_ingredient_prices",
    "create_ingredient_price",
    "get_ingredient_price",
    "update_ingredient_price",
    "delete_ingredient_price",
]
