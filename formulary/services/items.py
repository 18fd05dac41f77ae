"""
Recipe item service -- add, update, remove, reprice.

Every item mutation and the owning recipe's cost update run in one
transaction, with the recipe row locked, so the stored total never
drifts from the sum of its items.

Lock order is material -> recipe everywhere a material is involved.

All methods are @classmethod so the mixin can be composed into Formula
without instantiation.
"""

import logging
from decimal import Decimal

from django.db import transaction

from formulary.exceptions import NotFound, UnknownReference
from formulary.models import Material, Recipe, RecipeItem, RecipeItemType
from formulary.updates import RecipeItemUpdate, as_update

logger = logging.getLogger(__name__)


class FormulaItems:
    """Recipe item operations (the recipe cost follows every change)."""

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def list_items(cls, recipe_id: int) -> list[RecipeItem]:
        """Items of a recipe, by sort_order then material name."""
        if not Recipe.objects.filter(pk=recipe_id).exists():
            raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)

        return list(
            RecipeItem.objects.filter(recipe_id=recipe_id)
            .select_related("material")
            .order_by("sort_order", "material__name")
        )

    @classmethod
    def get_item(cls, item_id: int) -> RecipeItem:
        try:
            return RecipeItem.objects.select_related("material", "recipe").get(pk=item_id)
        except RecipeItem.DoesNotExist:
            raise NotFound("RECIPE_ITEM_NOT_FOUND", item_id=item_id)

    # ══════════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_item(
        cls,
        recipe_id: int,
        material_id: int,
        quantity: Decimal | int | float | str,
        unit: str,
        conversion_ratio: Decimal | int | float | str = Decimal("1"),
        sort_order: int = 0,
        item_type: str = RecipeItemType.MAIN_INGREDIENT,
        is_optional: bool = False,
        notes: str | None = "",
    ) -> RecipeItem:
        """
        Add a material to a recipe and recompute the recipe cost.

        Raises:
            NotFound: recipe does not exist
            UnknownReference: material does not exist (MATERIAL_NOT_FOUND)
            ValidationError: invalid field, or material already in the recipe
        """
        if not Recipe.objects.filter(pk=recipe_id).exists():
            raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)

        with transaction.atomic():
            material = Material.objects.select_for_update().filter(pk=material_id).first()
            if material is None:
                raise UnknownReference("MATERIAL_NOT_FOUND", material_id=material_id)

            recipe = cls._lock_recipe(recipe_id)

            item = RecipeItem(
                recipe=recipe,
                material=material,
                quantity=quantity,
                unit=unit,
                conversion_ratio=conversion_ratio,
                sort_order=sort_order,
                item_type=item_type,
                is_optional=is_optional,
                notes=notes or "",
            )
            item.save()
            recipe.update_cost()

        logger.info(
            f"Added {material.name} to recipe {recipe}",
            extra={
                "recipe": recipe.pk,
                "material": material.pk,
                "item": item.pk,
                "estimated_cost": str(item.estimated_cost),
            },
        )

        return item

    @classmethod
    def update_item(cls, item_id: int, update: RecipeItemUpdate | dict) -> RecipeItem:
        """
        Apply the supplied fields, recompute the item and recipe cost.

        Fields left UNSET are not touched.
        """
        changes = as_update(update, RecipeItemUpdate).changes()

        with transaction.atomic():
            recipe_id = (
                RecipeItem.objects.filter(pk=item_id)
                .values_list("recipe_id", flat=True)
                .first()
            )
            if recipe_id is None:
                raise NotFound("RECIPE_ITEM_NOT_FOUND", item_id=item_id)

            recipe = cls._lock_recipe(recipe_id)
            item = RecipeItem.objects.select_related("material").get(pk=item_id)

            for field, value in changes.items():
                setattr(item, field, value)

            item.save()
            recipe.update_cost()

        item.recipe = recipe

        logger.info(
            f"Updated recipe item {item_id}",
            extra={
                "recipe": recipe_id,
                "item": item_id,
                "fields": sorted(changes),
                "estimated_cost": str(item.estimated_cost),
            },
        )

        return item

    @classmethod
    def remove_item(cls, item_id: int) -> bool:
        """Delete an item and recompute its (former) recipe's cost."""
        with transaction.atomic():
            recipe_id = (
                RecipeItem.objects.filter(pk=item_id)
                .values_list("recipe_id", flat=True)
                .first()
            )
            if recipe_id is None:
                raise NotFound("RECIPE_ITEM_NOT_FOUND", item_id=item_id)

            recipe = cls._lock_recipe(recipe_id)
            RecipeItem.objects.filter(pk=item_id).delete()
            recipe.update_cost()

        logger.info(
            f"Removed recipe item {item_id}",
            extra={"recipe": recipe_id, "item": item_id},
        )

        return True

    @classmethod
    def reprice_material(cls, material_id: int) -> list[Recipe]:
        """
        Recompute every item using a material, then their recipes.

        Run after a material's cost_per_unit changes. Returns the
        recipes whose totals were recomputed.
        """
        with transaction.atomic():
            material = Material.objects.select_for_update().filter(pk=material_id).first()
            if material is None:
                raise NotFound("MATERIAL_NOT_FOUND", material_id=material_id)

            recipe_ids = sorted(
                set(
                    RecipeItem.objects.filter(material_id=material_id).values_list(
                        "recipe_id", flat=True
                    )
                )
            )

            recipes = []
            for recipe_id in recipe_ids:
                recipe = cls._lock_recipe(recipe_id)
                for item in RecipeItem.objects.filter(
                    recipe_id=recipe_id, material_id=material_id
                ):
                    item.save(update_fields=["estimated_cost", "updated_at"])
                recipe.update_cost()
                recipes.append(recipe)

        logger.info(
            f"Repriced {len(recipes)} recipes using {material.name}",
            extra={
                "material": material.pk,
                "cost_per_unit": str(material.cost_per_unit),
                "recipes": recipe_ids,
            },
        )

        return recipes

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lock_recipe(cls, recipe_id: int) -> Recipe:
        """Lock the recipe row for the rest of the transaction."""
        try:
            return Recipe.objects.select_for_update().get(pk=recipe_id)
        except Recipe.DoesNotExist:
            raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)
