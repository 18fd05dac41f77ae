"""
Formulary Models.

Core models for recipe costing:
- Material: Input consumed by recipes, with a unit cost
- Product: Finished good made by one or more recipes
- Recipe: Versioned formulation of a product, with a derived cost
- RecipeItem: One material's quantity within a recipe
"""

from formulary.models.material import Material, MaterialCategory
from formulary.models.product import Product, ProductCategory
from formulary.models.recipe import Recipe, RecipeItem, RecipeItemType, RecipeStatus

__all__ = [
    "Material",
    "MaterialCategory",
    "Product",
    "ProductCategory",
    "Recipe",
    "RecipeItem",
    "RecipeItemType",
    "RecipeStatus",
]
