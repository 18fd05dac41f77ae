"""
Formulary Services.

Business logic that spans several models:
- catalog: Material and product CRUD, search and pagination
- recipes: Recipe CRUD, primary designation, cost recompute
- items: Recipe item add/update/remove and material repricing
"""

from formulary.services.catalog import FormulaCatalog
from formulary.services.items import FormulaItems
from formulary.services.recipes import FormulaRecipes

__all__ = [
    "FormulaCatalog",
    "FormulaRecipes",
    "FormulaItems",
]
