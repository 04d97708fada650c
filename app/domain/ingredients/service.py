"""Ingredient price service - per-business ingredient catalogue"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Business, IngredientPrice, RecipeIngredient
from .schemas import IngredientPriceCreate, IngredientPriceUpdate

logger = logging.getLogger(__name__)


class IngredientPriceService:
    def __init__(self, db: Session):
        self.db = db

    def list_prices(self, business: Business, search: Optional[str] = None) -> list[IngredientPrice]:
        query = self.db.query(IngredientPrice).filter(IngredientPrice.business_id == business.id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(IngredientPrice.name.ilike(pattern), IngredientPrice.supplier.ilike(pattern))
            )
        return query.order_by(IngredientPrice.name.asc()).all()

    def get_price(self, ingredient_id: int, business: Business) -> IngredientPrice:
        ingredient = (
            self.db.query(IngredientPrice)
            .filter(IngredientPrice.id == ingredient_id, IngredientPrice.business_id == business.id)
            .first()
        )
        if not ingredient:
            raise HTTPException(status_code=404, detail="Ingredient not found")
        return ingredient

    def _name_taken(self, business: Business, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(IngredientPrice.id).filter(
            IngredientPrice.business_id == business.id, IngredientPrice.name == name
        )
        if exclude_id is not None:
            query = query.filter(IngredientPrice.id != exclude_id)
        return query.first() is not None

    def _commit(self, name: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=409, detail=f"An ingredient named '{name}' already exists"
            ) from e

    def create_price(self, data: IngredientPriceCreate, business: Business) -> IngredientPrice:
        if self._name_taken(business, data.name):
            raise HTTPException(
                status_code=409, detail=f"An ingredient named '{data.name}' already exists"
            )

        ingredient = IngredientPrice(
            business_id=business.id,
            name=data.name,
            unit=data.unit,
            price_per_unit=data.pricePerUnit,
            supplier=data.supplier or None,
        )
        self.db.add(ingredient)
        self._commit(data.name)
        self.db.refresh(ingredient)
        logger.info(f"✅ Ingredient '{ingredient.name}' added to business {business.id}")
        return ingredient

    def update_price(
        self, ingredient_id: int, data: IngredientPriceUpdate, business: Business
    ) -> IngredientPrice:
        ingredient = self.get_price(ingredient_id, business)
        fields = data.model_dump(exclude_unset=True)

        if data.name and data.name != ingredient.name:
            if self._name_taken(business, data.name, exclude_id=ingredient.id):
                raise HTTPException(
                    status_code=409, detail=f"An ingredient named '{data.name}' already exists"
                )
            ingredient.name = data.name
        if data.unit:
            ingredient.unit = data.unit
        if data.pricePerUnit is not None:
            ingredient.price_per_unit = data.pricePerUnit
        if "supplier" in fields:
            ingredient.supplier = data.supplier or None

        self._commit(ingredient.name)
        self.db.refresh(ingredient)
        return ingredient

    def delete_price(self, ingredient_id: int, business: Business) -> dict:
        ingredient = self.get_price(ingredient_id, business)

        used_in = (
            self.db.query(RecipeIngredient)
            .filter(RecipeIngredient.ingredient_id == ingredient.id)
            .count()
        )
        if used_in:
            raise HTTPException(
                status_code=409,
                detail=f"Ingredient is used in {used_in} recipe line(s). Remove it from those recipes first.",
            )

        self.db.delete(ingredient)
        self.db.commit()
        return {"message": "Ingredient deleted"}
