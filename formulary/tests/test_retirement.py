"""
Tests for material deletion (Material.retire via formula.delete_material).

A material still used by a recipe is deactivated instead of deleted.
"""

from decimal import Decimal

import pytest
from django.db.models import ProtectedError

from formulary import formula, NotFound
from formulary.models import Material, RecipeItem


@pytest.mark.django_db
class TestDeleteMaterial:
    def test_unused_material_is_deleted(self, flour):
        assert formula.delete_material(flour.pk) is True
        assert not Material.objects.filter(pk=flour.pk).exists()

    def test_used_material_is_deactivated(self, recipe, flour):
        formula.add_item(recipe.pk, flour.pk, quantity=Decimal("200"), unit="g")

        assert formula.delete_material(flour.pk) is True

        flour.refresh_from_db()
        assert flour.is_active is False
        assert RecipeItem.objects.filter(material=flour).count() == 1

    def test_deactivated_material_keeps_costing(self, recipe, flour):
        formula.add_item(recipe.pk, flour.pk, quantity=Decimal("200"), unit="g")
        formula.delete_material(flour.pk)

        recipe.refresh_from_db()
        assert recipe.estimated_cost == Decimal("2.00")

    def test_deleting_again_deletes_once_unused(self, recipe, flour):
        item = formula.add_item(recipe.pk, flour.pk, quantity=Decimal("200"), unit="g")
        formula.delete_material(flour.pk)
        formula.remove_item(item.pk)

        formula.delete_material(flour.pk)

        assert not Material.objects.filter(pk=flour.pk).exists()

    def test_missing(self):
        with pytest.raises(NotFound) as exc:
            formula.delete_material(999)
        assert exc.value.code == "MATERIAL_NOT_FOUND"

    def test_direct_delete_is_protected(self, recipe, flour):
        """The foreign key itself refuses a hard delete of a used material."""
        formula.add_item(recipe.pk, flour.pk, quantity=Decimal("200"), unit="g")

        with pytest.raises(ProtectedError):
            Material.objects.filter(pk=flour.pk).delete()


@pytest.mark.django_db
class TestMaterialHistory:
    def test_deactivation_is_recorded(self, recipe, flour):
        formula.add_item(recipe.pk, flour.pk, quantity=Decimal("200"), unit="g")
        formula.delete_material(flour.pk)

        latest = flour.history.first()
        assert latest.is_active is False
        assert flour.history.count() == 2
