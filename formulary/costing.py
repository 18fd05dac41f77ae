"""
Cost calculation.

Pure Decimal arithmetic, no database access:

    item cost   = quantity * conversion_ratio * material.cost_per_unit
    recipe cost = sum of its items' costs

Item costs are quantized to the persisted cost precision (4 dp) before
they are stored, so the recipe total is an exact sum of stored values.

Usage:
    from formulary.costing import item_cost, recipe_cost

    item_cost(Decimal("200"), Decimal("1"), Decimal("0.01"))   # Decimal("2.0000")
    recipe_cost([Decimal("2.00"), Decimal("24.00")])           # Decimal("26.0000")
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

# Persisted column precision
QUANTITY_PLACES = 6
COST_PLACES = 4

COST_QUANTUM = Decimal(1).scaleb(-COST_PLACES)
QUANTITY_QUANTUM = Decimal(1).scaleb(-QUANTITY_PLACES)

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Convert int/float/str to Decimal without binary float drift."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_cost(value) -> Decimal:
    return to_decimal(value).quantize(COST_QUANTUM, rounding=ROUND_HALF_UP)


def standard_quantity(quantity, conversion_ratio) -> Decimal:
    """Quantity expressed in the material's standard unit."""
    return to_decimal(quantity) * to_decimal(conversion_ratio)


def item_cost(quantity, conversion_ratio, cost_per_unit) -> Decimal:
    """Cost of one recipe item at the material's current unit cost."""
    return quantize_cost(
        standard_quantity(quantity, conversion_ratio) * to_decimal(cost_per_unit)
    )


def recipe_cost(item_costs: Iterable) -> Decimal:
    """Sum of already-computed item costs."""
    total = ZERO
    for cost in item_costs:
        total += to_decimal(cost)
    return quantize_cost(total)
