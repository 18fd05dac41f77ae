"""
Formulary Service - Thin facade over the service mixins.

✅ COST AND PRIMARY RULES LIVE IN THE MODELS
This class only composes the catalog, recipe and item services so
callers have a single entry point.

Usage:
    from formulary import formula, NotFound

    flour = formula.create_material(
        name="Farinha de Trigo", category="raw_material", unit="g",
        cost_per_unit=Decimal("0.008"),
    )
    recipe = formula.create_recipe(
        product_id=bread.pk, name="Pão Branco", version="1.0", batch_yield=2,
    )
    formula.add_item(recipe.pk, flour.pk, quantity=1000, unit="g")
    formula.set_primary_recipe(recipe.pk)

    formula.calculate_recipe_cost(recipe.pk)  # Decimal("8.0000")
"""

from formulary.services import FormulaCatalog, FormulaItems, FormulaRecipes


class Formula(FormulaCatalog, FormulaRecipes, FormulaItems):
    """
    Recipe costing facade.

    Catalog:
        list_materials, get_material, create_material, update_material, delete_material,
        recipes_using_material
        list_products, get_product, create_product, update_product, delete_product

    Recipes:
        list_recipes, get_recipe, recipes_for_product, create_recipe,
        update_recipe, delete_recipe, set_primary_recipe,
        calculate_recipe_cost, update_recipe_cost

    Items:
        list_items, get_item, add_item, update_item, remove_item,
        reprice_material
    """
