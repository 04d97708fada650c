"""
Quote calculator - cost rollup for a recipe, a quantity and a decoration level.

Pure functions only: the service loads recipe, prices and settings and hands
them over as plain values.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

# Labor-hour multiplier per decoration complexity
COMPLEXITY_MULTIPLIERS = {
    "simple": 1.0,
    "media": 1.5,
    "compleja": 2.5,
}

# Cakes pay one flat box whatever the quantity, everything else pays per unit
CAKE_PRODUCT_TYPE = "Tarta"
CAKE_PACKAGING_COST = 2.5
UNIT_PACKAGING_COST = 1.0

# (from_unit, to_unit) -> factor
UNIT_CONVERSIONS = {
    ("g", "kg"): 0.001,
    ("kg", "g"): 1000.0,
    ("ml", "l"): 0.001,
    ("l", "ml"): 1000.0,
    ("unidad", "docena"): 1 / 12,
    ("docena", "unidad"): 12.0,
}


class UnitConversionError(ValueError):
    """Raised when two units have no conversion factor between them"""

    def __init__(self, from_unit: str, to_unit: str):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"Cannot convert from '{from_unit}' to '{to_unit}'")


@dataclass(frozen=True)
class RecipeLine:
    name: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class IngredientPriceInfo:
    price_per_unit: float
    unit: str


@dataclass(frozen=True)
class CostSettings:
    labor_rate_hourly: float
    overhead_markup_percent: float
    profit_margin_percent: float
    iva_percent: float


@dataclass
class ConversionIssue:
    ingredient: str
    from_unit: str
    to_unit: str


@dataclass
class QuoteBreakdown:
    ingredient_cost: float
    packaging_cost: float
    labor_hours: float
    labor_cost: float
    overhead: float
    total_cost: float
    profit_amount: float
    base_price: float
    iva_amount: float
    final_price: float
    missing_prices: list[str] = field(default_factory=list)
    conversion_errors: list[ConversionIssue] = field(default_factory=list)


def convert_quantity(quantity: float, from_unit: str, to_unit: str) -> float:
    """Express `quantity` of `from_unit` in `to_unit`"""
    if from_unit == to_unit:
        return quantity
    factor = UNIT_CONVERSIONS.get((from_unit, to_unit))
    if factor is None:
        raise UnitConversionError(from_unit, to_unit)
    return quantity * factor


def packaging_cost(product_type: Optional[str], quantity: int) -> float:
    if product_type == CAKE_PRODUCT_TYPE:
        return CAKE_PACKAGING_COST
    return UNIT_PACKAGING_COST * quantity


def ingredient_cost(
    lines: Sequence[RecipeLine], prices: Mapping[str, IngredientPriceInfo], quantity: int
) -> tuple[float, list[str], list[ConversionIssue]]:
    """
    Cost of the recipe ingredients for `quantity` units.
    Lines without a price or with an unsupported unit pair contribute nothing
    and are reported back instead.
    """
    per_unit = 0.0
    missing: list[str] = []
    conversion_errors: list[ConversionIssue] = []

    for line in lines:
        price = prices.get(line.name)
        if price is None:
            missing.append(line.name)
            continue
        try:
            qty_in_price_unit = convert_quantity(line.quantity, line.unit, price.unit)
        except UnitConversionError as e:
            conversion_errors.append(ConversionIssue(line.name, e.from_unit, e.to_unit))
            continue
        per_unit += qty_in_price_unit * price.price_per_unit

    return per_unit * quantity, missing, conversion_errors


def calculate_quote(
    lines: Sequence[RecipeLine],
    prices: Mapping[str, IngredientPriceInfo],
    settings: CostSettings,
    quantity: int,
    complexity: str,
    product_type: Optional[str],
    base_labor_hours: float,
) -> QuoteBreakdown:
    """Full cost breakdown and recommended price, rounded to cents"""
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    if complexity not in COMPLEXITY_MULTIPLIERS:
        raise ValueError(f"Unknown decoration complexity '{complexity}'")

    ingredients, missing, conversion_errors = ingredient_cost(lines, prices, quantity)
    packaging = packaging_cost(product_type, quantity)

    labor_hours = (base_labor_hours or 0) * COMPLEXITY_MULTIPLIERS[complexity] * quantity
    labor = labor_hours * settings.labor_rate_hourly

    direct_costs = ingredients + packaging + labor
    overhead = direct_costs * settings.overhead_markup_percent / 100
    total_cost = direct_costs + overhead

    margin = settings.profit_margin_percent / 100
    base_price = total_cost / (1 - margin) if margin < 1 else total_cost

    iva_amount = base_price * settings.iva_percent / 100
    final_price = base_price + iva_amount

    return QuoteBreakdown(
        ingredient_cost=round(ingredients, 2),
        packaging_cost=round(packaging, 2),
        labor_hours=round(labor_hours, 2),
        labor_cost=round(labor, 2),
        overhead=round(overhead, 2),
        total_cost=round(total_cost, 2),
        profit_amount=round(base_price - total_cost, 2),
        base_price=round(base_price, 2),
        iva_amount=round(iva_amount, 2),
        final_price=round(final_price, 2),
        missing_prices=missing,
        conversion_errors=conversion_errors,
    )
