from dataclasses import replace

import pytest

from app.domain.quotes.calculator import (
    CostSettings,
    IngredientPriceInfo,
    RecipeLine,
    UnitConversionError,
    calculate_quote,
    convert_quantity,
    packaging_cost,
)

SETTINGS = CostSettings(
    labor_rate_hourly=15,
    overhead_markup_percent=20,
    profit_margin_percent=30,
    iva_percent=10,
)

PRICES = {
    "Harina": IngredientPriceInfo(price_per_unit=1.2, unit="kg"),
    "Huevos": IngredientPriceInfo(price_per_unit=2.4, unit="docena"),
    "Leche": IngredientPriceInfo(price_per_unit=0.9, unit="l"),
}


@pytest.mark.parametrize(
    "from_unit,to_unit",
    [("g", "kg"), ("kg", "g"), ("ml", "l"), ("l", "ml"), ("unidad", "docena"), ("docena", "unidad")],
)
def test_conversion_is_symmetric(from_unit, to_unit):
    there = convert_quantity(750, from_unit, to_unit)
    assert convert_quantity(there, to_unit, from_unit) == pytest.approx(750)


def test_same_unit_is_identity():
    assert convert_quantity(3.5, "g", "g") == 3.5


def test_unsupported_pair_raises():
    with pytest.raises(UnitConversionError) as exc:
        convert_quantity(1, "g", "ml")
    assert exc.value.from_unit == "g"
    assert exc.value.to_unit == "ml"


def test_cake_packaging_is_flat_and_others_per_unit():
    assert packaging_cost("Tarta", 4) == 2.5
    assert packaging_cost("Cupcakes", 12) == 12.0


def test_full_breakdown():
    lines = [RecipeLine("Harina", 500, "g"), RecipeLine("Huevos", 3, "unidad")]

    quote = calculate_quote(
        lines=lines,
        prices=PRICES,
        settings=SETTINGS,
        quantity=2,
        complexity="media",
        product_type="Tarta",
        base_labor_hours=1,
    )

    # 0.6 flour + 0.6 eggs per cake
    assert quote.ingredient_cost == 2.4
    assert quote.packaging_cost == 2.5
    assert quote.labor_hours == 3.0
    assert quote.labor_cost == 45.0
    assert quote.overhead == 9.98
    assert quote.total_cost == 59.88
    assert quote.base_price == 85.54
    assert quote.profit_amount == 25.66
    assert quote.iva_amount == 8.55
    assert quote.final_price == 94.1
    assert quote.missing_prices == []
    assert quote.conversion_errors == []


def test_unpriced_and_unconvertible_lines_are_reported():
    lines = [
        RecipeLine("Harina", 1, "kg"),
        RecipeLine("Mantequilla", 200, "g"),
        RecipeLine("Leche", 200, "g"),
    ]

    quote = calculate_quote(lines, PRICES, SETTINGS, 1, "simple", "Galletas", 0)

    assert quote.ingredient_cost == 1.2
    assert quote.missing_prices == ["Mantequilla"]
    assert len(quote.conversion_errors) == 1
    issue = quote.conversion_errors[0]
    assert (issue.ingredient, issue.from_unit, issue.to_unit) == ("Leche", "g", "l")


def test_price_grows_with_complexity():
    lines = [RecipeLine("Harina", 300, "g")]
    prices = [
        calculate_quote(lines, PRICES, SETTINGS, 1, level, "Tarta", 2).final_price
        for level in ("simple", "media", "compleja")
    ]
    assert prices == sorted(prices)
    assert len(set(prices)) == 3


def test_final_price_covers_cost_and_tax():
    quote = calculate_quote([RecipeLine("Harina", 1, "kg")], PRICES, SETTINGS, 3, "simple", "Galletas", 0.5)
    assert quote.final_price > quote.base_price > quote.total_cost


@pytest.mark.parametrize("margin", [5, 30, 60, 99])
def test_positive_margin_prices_above_cost(margin):
    settings = replace(SETTINGS, profit_margin_percent=margin, iva_percent=0)
    quote = calculate_quote([RecipeLine("Harina", 500, "g")], PRICES, settings, 2, "media", "Tarta", 1)
    assert quote.final_price > quote.total_cost
    assert quote.profit_amount > 0


@pytest.mark.parametrize("margin", [100, 150])
def test_margin_of_100_or_more_prices_at_cost(margin):
    settings = replace(SETTINGS, profit_margin_percent=margin)
    quote = calculate_quote([RecipeLine("Harina", 500, "g")], PRICES, settings, 1, "simple", "Tarta", 1)
    assert quote.base_price == quote.total_cost
    assert quote.profit_amount == 0
    assert quote.final_price == pytest.approx(quote.total_cost * 1.10, abs=0.01)


def test_invalid_inputs_are_rejected():
    with pytest.raises(ValueError):
        calculate_quote([], PRICES, SETTINGS, 0, "simple", "Tarta", 1)
    with pytest.raises(ValueError):
        calculate_quote([], PRICES, SETTINGS, 1, "barroca", "Tarta", 1)
