"""Product type router - custom product categories per business"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, require_roles
from ...database import get_db
from ...models import ProductType
from .schemas import ProductTypeCreate, ProductTypeResponse, ProductTypeUpdate
from .service import ProductTypeService

router = APIRouter(prefix="/product-types", tags=["Product Types"])

WRITE_ROLES = ("OWNER", "ADMIN", "EDITOR")


def get_product_type_service(db: Session = Depends(get_db)) -> ProductTypeService:
    return ProductTypeService(db)


def to_product_type_response(p: ProductType) -> ProductTypeResponse:
    return ProductTypeResponse(id=p.id, name=p.name, createdAt=p.created_at)


@router.get("", response_model=list[ProductTypeResponse])
async def list_product_types(
    q: Optional[str] = Query(None),
    ctx: BusinessContext = Depends(get_business_context),
    service: ProductTypeService = Depends(get_product_type_service),
):
    return [to_product_type_response(p) for p in service.list_product_types(ctx.business, q)]


@router.post("", response_model=ProductTypeResponse, status_code=201)
async def create_product_type(
    data: ProductTypeCreate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: ProductTypeService = Depends(get_product_type_service),
):
    return to_product_type_response(service.create_product_type(data.name, ctx.business))


@router.patch("/{product_type_id}", response_model=ProductTypeResponse)
async def update_product_type(
    product_type_id: int,
    data: ProductTypeUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: ProductTypeService = Depends(get_product_type_service),
):
    return to_product_type_response(
        service.rename_product_type(product_type_id, data.name, ctx.business)
    )


@router.delete("/{product_type_id}")
async def delete_product_type(
    product_type_id: int,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: ProductTypeService = Depends(get_product_type_service),
):
    return service.delete_product_type(product_type_id, ctx.business)


__all__ = ["router", "list_product_types", "create_product_type", "update_product_type", "delete_product_type"]
