"""Recipe service - recipes are written together with their ingredient lines"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ...models import Business, IngredientPrice, Recipe, RecipeIngredient
from ...plan_limits import can_add_recipe
from .schemas import RecipeCreate, RecipeIngredientInput, RecipeUpdate

logger = logging.getLogger(__name__)


class RecipeService:
    def __init__(self, db: Session):
        self.db = db

    def list_recipes(self, business: Business) -> list[Recipe]:
        return (
            self.db.query(Recipe)
            .options(selectinload(Recipe.ingredients).selectinload(RecipeIngredient.ingredient))
            .filter(Recipe.business_id == business.id)
            .order_by(Recipe.name.asc())
            .all()
        )

    def get_recipe(self, recipe_id: int, business: Business) -> Recipe:
        recipe = (
            self.db.query(Recipe)
            .filter(Recipe.id == recipe_id, Recipe.business_id == business.id)
            .first()
        )
        if not recipe:
            raise HTTPException(status_code=404, detail="Recipe not found")
        return recipe

    def _build_lines(self, lines: list[RecipeIngredientInput], business: Business) -> list[RecipeIngredient]:
        ids = {line.ingredientId for line in lines}
        owned = {
            row.id
            for row in self.db.query(IngredientPrice.id)
            .filter(IngredientPrice.business_id == business.id, IngredientPrice.id.in_(ids))
            .all()
        }
        unknown = ids - owned
        if unknown:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown ingredient id(s): {', '.join(str(i) for i in sorted(unknown))}",
            )
        return [
            RecipeIngredient(ingredient_id=line.ingredientId, quantity=line.quantity, unit=line.unit)
            for line in lines
        ]

    def _duplicate_name(self, business: Business, name: str, exclude_id=None) -> bool:
        query = self.db.query(Recipe.id).filter(Recipe.business_id == business.id, Recipe.name == name)
        if exclude_id is not None:
            query = query.filter(Recipe.id != exclude_id)
        return query.first() is not None

    def _commit(self, name: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail=f"A recipe named '{name}' already exists") from e

    def create_recipe(self, data: RecipeCreate, business: Business) -> Recipe:
        can_add, error = can_add_recipe(business, self.db)
        if not can_add:
            raise HTTPException(status_code=403, detail=error)

        if self._duplicate_name(business, data.name):
            raise HTTPException(status_code=409, detail=f"A recipe named '{data.name}' already exists")

        recipe = Recipe(
            business_id=business.id,
            name=data.name,
            product_type=data.productType,
            base_labor_hours=data.baseLaborHours,
            notes=data.notes,
        )
        recipe.ingredients = self._build_lines(data.recipeIngredients, business)
        self.db.add(recipe)
        self._commit(data.name)
        self.db.refresh(recipe)
        logger.info(
            f"✅ Recipe '{recipe.name}' created for business {business.id} "
            f"with {len(recipe.ingredients)} ingredient(s)"
        )
        return recipe

    def update_recipe(self, recipe_id: int, data: RecipeUpdate, business: Business) -> Recipe:
        recipe = self.get_recipe(recipe_id, business)
        fields = data.model_dump(exclude_unset=True)

        if data.name and data.name != recipe.name:
            if self._duplicate_name(business, data.name, exclude_id=recipe.id):
                raise HTTPException(status_code=409, detail=f"A recipe named '{data.name}' already exists")
            recipe.name = data.name
        if data.productType:
            recipe.product_type = data.productType
        if data.baseLaborHours is not None:
            recipe.base_labor_hours = data.baseLaborHours
        if "notes" in fields:
            recipe.notes = data.notes

        # Lines are replaced as a whole; delete-orphan removes the old rows
        if data.recipeIngredients is not None:
            new_lines = self._build_lines(data.recipeIngredients, business)
            recipe.ingredients.clear()
            self.db.flush()
            recipe.ingredients.extend(new_lines)

        self._commit(recipe.name)
        self.db.refresh(recipe)
        return recipe

    def delete_recipe(self, recipe_id: int, business: Business) -> dict:
        recipe = self.get_recipe(recipe_id, business)
        self.db.delete(recipe)
        self.db.commit()
        logger.info(f"🗑️ Recipe {recipe_id} deleted from business {business.id}")
        return {"message": "Recipe deleted"}
