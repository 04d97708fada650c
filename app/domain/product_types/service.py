"""Product type service"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Business, ProductType

logger = logging.getLogger(__name__)


class ProductTypeService:
    def __init__(self, db: Session):
        self.db = db

    def list_product_types(self, business: Business, search: Optional[str] = None) -> list[ProductType]:
        query = self.db.query(ProductType).filter(ProductType.business_id == business.id)
        if search:
            query = query.filter(ProductType.name.ilike(f"%{search.strip()}%"))
        return query.order_by(ProductType.name.asc()).all()

    def get_product_type(self, product_type_id: int, business: Business) -> ProductType:
        product_type = (
            self.db.query(ProductType)
            .filter(ProductType.id == product_type_id, ProductType.business_id == business.id)
            .first()
        )
        if not product_type:
            raise HTTPException(status_code=404, detail="Product type not found")
        return product_type

    def _save(self, product_type: ProductType) -> ProductType:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=409, detail=f"Product type '{product_type.name}' already exists"
            ) from e
        self.db.refresh(product_type)
        return product_type

    def create_product_type(self, name: str, business: Business) -> ProductType:
        product_type = ProductType(business_id=business.id, name=name)
        self.db.add(product_type)
        return self._save(product_type)

    def rename_product_type(self, product_type_id: int, name: str, business: Business) -> ProductType:
        product_type = self.get_product_type(product_type_id, business)
        product_type.name = name
        return self._save(product_type)

    def delete_product_type(self, product_type_id: int, business: Business) -> dict:
        product_type = self.get_product_type(product_type_id, business)
        self.db.delete(product_type)
        self.db.commit()
        return {"message": "Product type deleted"}
