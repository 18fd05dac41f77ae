"""
Recipe service -- CRUD, primary designation, cost recompute.

Thin wrappers over Recipe model methods (set_primary, update_cost)
that add lookup, NotFound handling and transaction boundaries.

All methods are @classmethod so the mixin can be composed into Formula
without instantiation.
"""

import logging
from decimal import Decimal

from django.db import transaction

from formulary.exceptions import NotFound
from formulary.models import Product, Recipe, RecipeStatus
from formulary.results import Page
from formulary.services.catalog import (
    blank_optional,
    check_choice,
    check_fields,
    paginate,
    search_filter,
)
from formulary.updates import UNSET, RecipeUpdate, as_update

logger = logging.getLogger(__name__)


RECIPE_FIELDS = frozenset({
    "product_id",
    "name",
    "version",
    "description",
    "batch_yield",
    "instructions",
    "created_by",
})


class FormulaRecipes:
    """Recipe operations."""

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def list_recipes(
        cls,
        search: str | None = None,
        status: str | None = None,
        product_id: int | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        """Recipes matching name, description or product name."""
        qs = Recipe.objects.select_related("product").filter(
            search_filter(search, ("name", "description", "product__name"))
        )
        if status:
            check_choice("status", status, RecipeStatus)
            qs = qs.filter(status=status)
        if product_id is not None:
            qs = qs.filter(product_id=product_id)

        return paginate(qs.order_by("product__name", "name", "pk"), page, page_size)

    @classmethod
    def get_recipe(cls, recipe_id: int) -> Recipe:
        try:
            return (
                Recipe.objects.select_related("product")
                .prefetch_related("items__material")
                .get(pk=recipe_id)
            )
        except Recipe.DoesNotExist:
            raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)

    @classmethod
    def recipes_for_product(cls, product_id: int) -> list[Recipe]:
        """All recipes of a product, primary first, then by name."""
        if not Product.objects.filter(pk=product_id).exists():
            raise NotFound("PRODUCT_NOT_FOUND", product_id=product_id)

        return list(
            Recipe.objects.filter(product_id=product_id)
            .prefetch_related("items__material")
            .order_by("-is_primary", "name", "version")
        )

    # ══════════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_recipe(cls, **fields) -> Recipe:
        """
        Create a recipe for a product.

        estimated_cost starts at zero and is only changed by item
        mutations; is_primary is set through set_primary_recipe().
        """
        check_fields(fields, RECIPE_FIELDS)
        recipe = Recipe(**blank_optional(fields, "description", "instructions", "created_by"))
        recipe.save()

        logger.info(
            f"Created recipe {recipe} for product {recipe.product_id}",
            extra={"recipe": recipe.pk, "product": recipe.product_id},
        )

        return recipe

    @classmethod
    def update_recipe(cls, recipe_id: int, update: RecipeUpdate | dict) -> Recipe:
        """
        Apply the supplied fields.

        is_primary=True runs the sibling demotion sweep first;
        a non-empty approved_by stamps approved_at.
        """
        from formulary.signals import primary_recipe_changed

        changes = as_update(update, RecipeUpdate).changes()
        make_primary = changes.pop("is_primary", UNSET)
        approved_by = changes.pop("approved_by", UNSET)

        with transaction.atomic():
            if make_primary:
                recipe = cls._lock_product_recipes(recipe_id)
            else:
                recipe = Recipe.objects.select_for_update().filter(pk=recipe_id).first()
            if recipe is None:
                raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)

            for field, value in changes.items():
                setattr(recipe, field, value)
            if approved_by is not UNSET:
                recipe.assign_approver(approved_by)

            demoted = []
            if make_primary is not UNSET:
                if make_primary:
                    demoted = recipe.demote_siblings()
                recipe.is_primary = make_primary

            recipe.save()
            recipe.update_cost()

        if make_primary is not UNSET and make_primary:
            primary_recipe_changed.send(sender=Recipe, recipe=recipe, demoted=demoted)

        fields = set(changes)
        if make_primary is not UNSET:
            fields.add("is_primary")
        if approved_by is not UNSET:
            fields.add("approved_by")

        logger.info(
            f"Updated recipe {recipe}",
            extra={"recipe": recipe.pk, "fields": sorted(fields)},
        )

        return recipe

    @classmethod
    def delete_recipe(cls, recipe_id: int) -> bool:
        """Delete a recipe and its items."""
        deleted, _ = Recipe.objects.filter(pk=recipe_id).delete()
        if not deleted:
            raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)

        logger.info(f"Deleted recipe {recipe_id}", extra={"recipe": recipe_id})

        return True

    @classmethod
    def set_primary_recipe(cls, recipe_id: int) -> Recipe:
        """
        Make a recipe its product's only primary recipe.

        Idempotent: calling it again for the current primary is a no-op
        apart from refreshing updated_at.
        """
        with transaction.atomic():
            recipe = cls._lock_product_recipes(recipe_id)
            if recipe is None:
                raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)
            recipe.set_primary()

        return recipe

    # ══════════════════════════════════════════════════════════════
    # COST
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def calculate_recipe_cost(cls, recipe_id: int) -> Decimal:
        """Fresh sum of the recipe's item costs (nothing is written)."""
        try:
            recipe = Recipe.objects.get(pk=recipe_id)
        except Recipe.DoesNotExist:
            raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)
        return recipe.calculate_cost()

    @classmethod
    def update_recipe_cost(cls, recipe_id: int) -> None:
        """Recompute and persist the recipe's estimated_cost."""
        with transaction.atomic():
            recipe = Recipe.objects.filter(pk=recipe_id).first()
            if recipe is None:
                raise NotFound("RECIPE_NOT_FOUND", recipe_id=recipe_id)
            recipe.update_cost()

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lock_product_recipes(cls, recipe_id: int) -> Recipe | None:
        """
        Lock every recipe of the target's product in pk order.

        Returns the target, or None if it does not exist. Concurrent
        promotions of sibling recipes queue on the same rows in the
        same order.
        """
        product_id = (
            Recipe.objects.filter(pk=recipe_id)
            .values_list("product_id", flat=True)
            .first()
        )
        if product_id is None:
            return None

        locked = list(
            Recipe.objects.filter(product_id=product_id)
            .order_by("pk")
            .select_for_update()
        )
        return next((r for r in locked if str(r.pk) == str(recipe_id)), None)
