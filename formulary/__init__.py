"""
Django Formulary - Recipe costing for small manufacturers.

Materials, products and versioned recipes whose cost is always the
sum of their items at current material prices.

Usage:
    from formulary import formula, NotFound

    recipe = formula.create_recipe(
        product_id=bread.pk, name="Pão Branco", version="1.0", batch_yield=2,
    )
    formula.add_item(recipe.pk, flour.pk, quantity=1000, unit="g")
    formula.add_item(recipe.pk, egg.pk, quantity=2, unit="un")
    formula.set_primary_recipe(recipe.pk)

    try:
        formula.get_recipe(999)
    except NotFound as e:
        print(e.code)  # RECIPE_NOT_FOUND
"""

from formulary.exceptions import FormulaError, InvalidOperation, NotFound
from formulary.updates import UNSET


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in ("formula", "Formula"):
        from formulary.service import Formula

        return Formula
    if name == "Page":
        from formulary.results import Page

        return Page
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "formula",
    "Formula",
    "FormulaError",
    "NotFound",
    "InvalidOperation",
    "UNSET",
    "Page",
]
__version__ = "0.1.0"
