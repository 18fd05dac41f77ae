"""
Tests for primary recipe designation.

At most one recipe per product is primary, whichever path sets it:
set_primary_recipe(), update_recipe(is_primary=True) or the database
constraint itself.
"""

from decimal import Decimal
from unittest import mock

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from formulary import formula, NotFound
from formulary.models import Product, Recipe
from formulary.updates import RecipeUpdate


def primaries(product) -> list[int]:
    return list(
        Recipe.objects.filter(product=product, is_primary=True).values_list("pk", flat=True)
    )


@pytest.fixture
def recipe_b(db, product):
    return Recipe.objects.create(
        product=product, name="Pão de Forma Integral", version="1.0", batch_yield=Decimal("2"),
    )


@pytest.mark.django_db
class TestSetPrimaryRecipe:
    def test_first_primary(self, product, recipe):
        result = formula.set_primary_recipe(recipe.pk)

        assert result.pk == recipe.pk
        assert result.is_primary is True
        assert primaries(product) == [recipe.pk]
        assert product.primary_recipe == recipe

    def test_demotes_previous_primary(self, product, recipe, recipe_b):
        formula.set_primary_recipe(recipe.pk)
        formula.set_primary_recipe(recipe_b.pk)

        recipe.refresh_from_db()
        assert recipe.is_primary is False
        assert primaries(product) == [recipe_b.pk]

    def test_idempotent(self, product, recipe):
        formula.set_primary_recipe(recipe.pk)
        formula.set_primary_recipe(recipe.pk)

        assert primaries(product) == [recipe.pk]

    def test_other_products_untouched(self, product, recipe):
        other_product = Product.objects.create(
            name="Bolo", code="CAKE-001", standard_yield=1, yield_unit="un",
            production_minutes=60,
        )
        other = Recipe.objects.create(
            product=other_product, name="Bolo", version="1.0", batch_yield=Decimal("1"),
        )
        formula.set_primary_recipe(other.pk)

        formula.set_primary_recipe(recipe.pk)

        assert primaries(other_product) == [other.pk]
        assert primaries(product) == [recipe.pk]

    def test_missing(self):
        with pytest.raises(NotFound) as exc:
            formula.set_primary_recipe(999)
        assert exc.value.code == "RECIPE_NOT_FOUND"

    def test_demoted_list_returned_by_model(self, recipe, recipe_b):
        recipe.set_primary()
        demoted = recipe_b.set_primary()
        assert [r.pk for r in demoted] == [recipe.pk]


@pytest.mark.django_db
class TestUpdateRecipePrimary:
    def test_update_runs_demotion_sweep(self, product, recipe, recipe_b):
        formula.set_primary_recipe(recipe.pk)

        updated = formula.update_recipe(recipe_b.pk, RecipeUpdate(is_primary=True))

        assert updated.is_primary is True
        assert primaries(product) == [recipe_b.pk]

    def test_update_can_clear_primary(self, product, recipe):
        formula.set_primary_recipe(recipe.pk)

        formula.update_recipe(recipe.pk, RecipeUpdate(is_primary=False))

        assert primaries(product) == []
        assert product.primary_recipe is None


@pytest.mark.django_db
class TestPrimaryConstraint:
    def test_full_clean_rejects_second_primary(self, recipe, recipe_b):
        formula.set_primary_recipe(recipe.pk)
        recipe_b.is_primary = True

        with pytest.raises(ValidationError):
            recipe_b.save()

    def test_database_rejects_second_primary(self, recipe, recipe_b):
        formula.set_primary_recipe(recipe.pk)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Recipe.objects.filter(pk=recipe_b.pk).update(is_primary=True)


@pytest.fixture
def row_locks():
    """Querysets passed through select_for_update(), in call order."""
    captured = []
    select_for_update = QuerySet.select_for_update

    def recording(queryset, *args, **kwargs):
        locked = select_for_update(queryset, *args, **kwargs)
        captured.append(locked)
        return locked

    with mock.patch.object(QuerySet, "select_for_update", recording):
        yield captured


@pytest.mark.django_db
class TestPrimaryLockOrder:
    """Promotions lock the whole product's recipes, by pk, before the target."""

    def assert_product_locked_first(self, locks, *recipes):
        first = locks[0]
        assert first.model is Recipe
        assert first.query.order_by == ("pk",)
        assert list(first.values_list("pk", flat=True)) == sorted(r.pk for r in recipes)

    def test_set_primary_recipe(self, recipe, recipe_b, row_locks):
        formula.set_primary_recipe(recipe_b.pk)

        self.assert_product_locked_first(row_locks, recipe, recipe_b)

    def test_update_recipe_is_primary(self, recipe, recipe_b, row_locks):
        formula.update_recipe(recipe_b.pk, RecipeUpdate(is_primary=True))

        self.assert_product_locked_first(row_locks, recipe, recipe_b)

    def test_model_set_primary(self, recipe, recipe_b, row_locks):
        recipe_b.set_primary()

        self.assert_product_locked_first(row_locks, recipe, recipe_b)

    def test_string_pk(self, product, recipe):
        result = formula.set_primary_recipe(str(recipe.pk))

        assert result.pk == recipe.pk
        assert primaries(product) == [recipe.pk]
