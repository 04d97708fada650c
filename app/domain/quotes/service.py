"""Quote service - loads recipe, prices and settings and runs the calculator"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ...models import Business, BusinessSettings, Recipe, RecipeIngredient
from .calculator import CostSettings, IngredientPriceInfo, RecipeLine, calculate_quote
from .schemas import ConversionErrorResponse, QuoteRequest, QuoteResponse

logger = logging.getLogger(__name__)


class QuoteService:
    """Service layer for quote calculations"""

    def __init__(self, db: Session):
        self.db = db

    def _find_recipe(self, data: QuoteRequest, business: Business) -> Recipe:
        query = (
            self.db.query(Recipe)
            .options(selectinload(Recipe.ingredients).selectinload(RecipeIngredient.ingredient))
            .filter(Recipe.business_id == business.id)
        )
        if data.recipeId is not None:
            recipe = query.filter(Recipe.id == data.recipeId).first()
        else:
            recipe = (
                query.filter(Recipe.product_type == data.productType).order_by(Recipe.id).first()
            )
        if not recipe:
            raise HTTPException(status_code=404, detail="Recipe not found")
        return recipe

    def calculate(self, data: QuoteRequest, business: Business) -> QuoteResponse:
        recipe = self._find_recipe(data, business)

        settings = (
            self.db.query(BusinessSettings)
            .filter(BusinessSettings.business_id == business.id)
            .first()
        )
        if not settings:
            raise HTTPException(
                status_code=400,
                detail="Pricing settings are not configured. Save your settings first.",
            )

        # Lines reference the business's own price rows, so every line is priced
        prices = {
            ri.ingredient.name: IngredientPriceInfo(
                price_per_unit=ri.ingredient.price_per_unit, unit=ri.ingredient.unit
            )
            for ri in recipe.ingredients
        }
        lines = [
            RecipeLine(name=ri.ingredient.name, quantity=ri.quantity, unit=ri.unit)
            for ri in recipe.ingredients
        ]

        breakdown = calculate_quote(
            lines=lines,
            prices=prices,
            settings=CostSettings(
                labor_rate_hourly=settings.labor_rate_hourly,
                overhead_markup_percent=settings.overhead_markup_percent,
                profit_margin_percent=settings.profit_margin_percent,
                iva_percent=settings.iva_percent,
            ),
            quantity=data.quantity,
            complexity=data.decorationComplexity,
            product_type=recipe.product_type,
            base_labor_hours=recipe.base_labor_hours,
        )

        if breakdown.missing_prices or breakdown.conversion_errors:
            logger.info(
                f"⚠️ Quote for recipe {recipe.id} skipped {len(breakdown.missing_prices)} unpriced "
                f"and {len(breakdown.conversion_errors)} unconvertible ingredients"
            )

        return QuoteResponse(
            recipeId=recipe.id,
            recipeName=recipe.name,
            productType=recipe.product_type,
            quantity=data.quantity,
            decorationComplexity=data.decorationComplexity,
            flavor=data.flavor,
            sizeOrWeight=data.sizeOrWeight,
            details=data.details,
            cogsIngredients=breakdown.ingredient_cost,
            cogsPackaging=breakdown.packaging_cost,
            laborHours=breakdown.labor_hours,
            directLaborCost=breakdown.labor_cost,
            allocatedOverhead=breakdown.overhead,
            totalCost=breakdown.total_cost,
            profitAmount=breakdown.profit_amount,
            basePrice=breakdown.base_price,
            ivaAmount=breakdown.iva_amount,
            finalPrice=breakdown.final_price,
            missingPrices=breakdown.missing_prices,
            conversionErrors=[
                ConversionErrorResponse(ingredient=c.ingredient, fromUnit=c.from_unit, toUnit=c.to_unit)
                for c in breakdown.conversion_errors
            ],
        )
