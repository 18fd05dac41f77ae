"""
Tests for Formulary API ViewSets (formulary.api.views).

Verifies the DRF endpoints and the error mapping:
NotFound -> 404, ValidationError / InvalidOperation -> 400.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from formulary import formula
from formulary.models import Material, Recipe, RecipeItem

pytestmark = pytest.mark.urls("formulary.tests.test_api_urls")

User = get_user_model()

BASE = "/api/formulary"


# ═══════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def api_client(db):
    user = User.objects.create_user(username="api_user", password="test123")
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def costed_recipe(recipe, flour, sugar, egg):
    formula.add_item(recipe.pk, flour.pk, quantity=Decimal("200"), unit="g", sort_order=1)
    formula.add_item(recipe.pk, sugar.pk, quantity=Decimal("150"), unit="g", sort_order=2)
    formula.add_item(recipe.pk, egg.pk, quantity=Decimal("3"), unit="un", sort_order=3)
    return recipe


# ═══════════════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestAuthentication:
    def test_anonymous_rejected(self):
        response = APIClient().get(f"{BASE}/materials/")
        assert response.status_code in (401, 403)


# ═══════════════════════════════════════════════════════════════════
# Materials
# ═══════════════════════════════════════════════════════════════════


class TestMaterialAPI:
    def test_list(self, api_client, flour, sugar):
        response = api_client.get(f"{BASE}/materials/")

        assert response.status_code == 200
        assert response.data["count"] == 2
        assert [m["name"] for m in response.data["results"]] == ["Flour", "Sugar"]

    def test_list_search_and_paging(self, api_client, flour, sugar, egg):
        response = api_client.get(f"{BASE}/materials/", {"page": 2, "page_size": 1})

        assert response.status_code == 200
        assert [m["name"] for m in response.data["results"]] == ["Flour"]
        assert response.data["num_pages"] == 3

        response = api_client.get(f"{BASE}/materials/", {"search": "SUG"})
        assert [m["name"] for m in response.data["results"]] == ["Sugar"]

    def test_list_only_active(self, api_client, flour, sugar):
        Material.objects.filter(pk=sugar.pk).update(is_active=False)

        response = api_client.get(f"{BASE}/materials/", {"only_active": "true"})

        assert [m["name"] for m in response.data["results"]] == ["Flour"]

    def test_invalid_page_size(self, api_client):
        response = api_client.get(f"{BASE}/materials/", {"page_size": 500})
        assert response.status_code == 400
        assert "page_size" in response.data

    def test_create(self, api_client):
        response = api_client.post(
            f"{BASE}/materials/",
            {"name": "Sal", "unit": "g", "cost_per_unit": "0.002"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["name"] == "Sal"
        assert Decimal(response.data["cost_per_unit"]) == Decimal("0.002")

    def test_create_invalid(self, api_client):
        response = api_client.post(
            f"{BASE}/materials/", {"name": "", "unit": "g"}, format="json"
        )

        assert response.status_code == 400
        assert "name" in response.data

    def test_create_rejects_non_object_body(self, api_client, db):
        response = api_client.post(f"{BASE}/materials/", [1, 2], format="json")

        assert response.status_code == 400
        assert not Material.objects.exists()

    def test_create_rejects_unknown_field(self, api_client, db):
        response = api_client.post(
            f"{BASE}/materials/",
            {"name": "Sal", "unit": "g", "is_active": False},
            format="json",
        )

        assert response.status_code == 400
        assert "is_active" in response.data

    def test_create_rejects_bad_decimal(self, api_client, db):
        response = api_client.post(
            f"{BASE}/materials/",
            {"name": "Sal", "unit": "g", "cost_per_unit": "barato"},
            format="json",
        )

        assert response.status_code == 400
        assert "cost_per_unit" in response.data

    def test_retrieve_lists_recipes_using_material(self, api_client, costed_recipe, flour):
        response = api_client.get(f"{BASE}/materials/{flour.pk}/")

        assert response.status_code == 200
        assert [r["id"] for r in response.data["used_in"]] == [costed_recipe.pk]
        assert response.data["used_in"][0]["product_name"] == "Pão de Forma"

    def test_list_rejects_non_integer_page(self, api_client, db):
        response = api_client.get(f"{BASE}/materials/", {"page": "two"})

        assert response.status_code == 400
        assert "page" in response.data

    def test_retrieve_missing(self, api_client):
        response = api_client.get(f"{BASE}/materials/999/")

        assert response.status_code == 404
        assert response.data["code"] == "MATERIAL_NOT_FOUND"

    def test_patch_cost_reprices(self, api_client, costed_recipe, flour):
        response = api_client.patch(
            f"{BASE}/materials/{flour.pk}/", {"cost_per_unit": "0.02"}, format="json"
        )

        assert response.status_code == 200
        costed_recipe.refresh_from_db()
        assert costed_recipe.estimated_cost == Decimal("31.00")

    def test_patch_read_only_field(self, api_client, flour):
        response = api_client.patch(
            f"{BASE}/materials/{flour.pk}/", {"created_at": "2020-01-01"}, format="json"
        )
        assert response.status_code == 400

    def test_delete_in_use_deactivates(self, api_client, costed_recipe, flour):
        response = api_client.delete(f"{BASE}/materials/{flour.pk}/")

        assert response.status_code == 204
        flour.refresh_from_db()
        assert flour.is_active is False


# ═══════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════


class TestProductAPI:
    def test_create_and_retrieve(self, api_client):
        response = api_client.post(
            f"{BASE}/products/",
            {
                "name": "Pãozinho de Manteiga",
                "code": "BREAD-002",
                "standard_yield": "12",
                "yield_unit": "un",
                "production_minutes": 150,
            },
            format="json",
        )
        assert response.status_code == 201

        detail = api_client.get(f"{BASE}/products/{response.data['id']}/")
        assert detail.data["code"] == "BREAD-002"
        assert detail.data["primary_recipe"] is None

    def test_recipes(self, api_client, product, recipe):
        formula.set_primary_recipe(recipe.pk)

        response = api_client.get(f"{BASE}/products/{product.pk}/recipes/")

        assert response.status_code == 200
        assert [r["id"] for r in response.data] == [recipe.pk]
        assert response.data[0]["is_primary"] is True

    def test_recipes_missing_product(self, api_client, db):
        response = api_client.get(f"{BASE}/products/999/recipes/")
        assert response.status_code == 404

    def test_delete(self, api_client, product, recipe):
        response = api_client.delete(f"{BASE}/products/{product.pk}/")

        assert response.status_code == 204
        assert not Recipe.objects.exists()


# ═══════════════════════════════════════════════════════════════════
# Recipes
# ═══════════════════════════════════════════════════════════════════


class TestRecipeAPI:
    def test_create(self, api_client, product):
        response = api_client.post(
            f"{BASE}/recipes/",
            {"product": product.pk, "name": "Integral", "version": "1.0", "batch_yield": "2"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["product"] == product.pk
        assert response.data["estimated_cost"] == "0.0000"

    def test_retrieve_includes_items(self, api_client, costed_recipe):
        response = api_client.get(f"{BASE}/recipes/{costed_recipe.pk}/")

        assert response.status_code == 200
        assert response.data["estimated_cost"] == "29.0000"
        assert [i["material_name"] for i in response.data["items"]] == ["Flour", "Sugar", "Egg"]

    def test_list_filter_by_product(self, api_client, recipe):
        response = api_client.get(f"{BASE}/recipes/", {"product": recipe.product_id})

        assert response.status_code == 200
        assert [r["id"] for r in response.data["results"]] == [recipe.pk]

    def test_list_rejects_non_integer_product(self, api_client, db):
        response = api_client.get(f"{BASE}/recipes/", {"product": "abc"})

        assert response.status_code == 400
        assert "product" in response.data

    def test_create_unknown_product(self, api_client, db):
        response = api_client.post(
            f"{BASE}/recipes/",
            {"product": 999, "name": "X", "version": "1.0", "batch_yield": "1"},
            format="json",
        )

        assert response.status_code == 400
        assert "product" in response.data

    def test_patch_is_primary(self, api_client, product, recipe):
        response = api_client.patch(
            f"{BASE}/recipes/{recipe.pk}/", {"is_primary": True}, format="json"
        )

        assert response.status_code == 200
        assert response.data["is_primary"] is True
        assert product.primary_recipe == recipe

    def test_list_invalid_status(self, api_client, db):
        response = api_client.get(f"{BASE}/recipes/", {"status": "archived"})
        assert response.status_code == 400

    def test_set_primary(self, api_client, product, recipe):
        other = Recipe.objects.create(
            product=product, name="Outra", version="1.0", batch_yield=Decimal("1"),
        )
        formula.set_primary_recipe(other.pk)

        response = api_client.post(f"{BASE}/recipes/{recipe.pk}/set-primary/")

        assert response.status_code == 200
        assert response.data["is_primary"] is True
        other.refresh_from_db()
        assert other.is_primary is False

    def test_set_primary_missing(self, api_client, db):
        response = api_client.post(f"{BASE}/recipes/999/set-primary/")

        assert response.status_code == 404
        assert response.data["code"] == "RECIPE_NOT_FOUND"

    def test_cost(self, api_client, costed_recipe):
        response = api_client.get(f"{BASE}/recipes/{costed_recipe.pk}/cost/")

        assert response.status_code == 200
        assert Decimal(response.data["cost"]) == Decimal("29.00")

    def test_update_cost(self, api_client, costed_recipe):
        Recipe.objects.filter(pk=costed_recipe.pk).update(estimated_cost=Decimal("0"))

        response = api_client.post(f"{BASE}/recipes/{costed_recipe.pk}/update-cost/")

        assert response.status_code == 200
        assert Decimal(response.data["estimated_cost"]) == Decimal("29.00")

    def test_patch_estimated_cost_rejected(self, api_client, recipe):
        response = api_client.patch(
            f"{BASE}/recipes/{recipe.pk}/", {"estimated_cost": "1"}, format="json"
        )
        assert response.status_code == 400


# ═══════════════════════════════════════════════════════════════════
# Recipe items
# ═══════════════════════════════════════════════════════════════════


class TestRecipeItemAPI:
    def test_list_items(self, api_client, costed_recipe):
        response = api_client.get(f"{BASE}/recipes/{costed_recipe.pk}/items/")

        assert response.status_code == 200
        assert [Decimal(i["estimated_cost"]) for i in response.data] == [
            Decimal("2.00"),
            Decimal("3.00"),
            Decimal("24.00"),
        ]

    def test_add_item(self, api_client, recipe, flour):
        response = api_client.post(
            f"{BASE}/recipes/{recipe.pk}/items/",
            {"material": flour.pk, "quantity": "200", "unit": "g"},
            format="json",
        )

        assert response.status_code == 201
        assert Decimal(response.data["estimated_cost"]) == Decimal("2.00")
        recipe.refresh_from_db()
        assert recipe.estimated_cost == Decimal("2.00")

    def test_add_item_missing_material(self, api_client, recipe):
        response = api_client.post(
            f"{BASE}/recipes/{recipe.pk}/items/",
            {"material": 999, "quantity": "1", "unit": "g"},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["code"] == "MATERIAL_NOT_FOUND"

    def test_add_item_missing_recipe(self, api_client, flour):
        response = api_client.post(
            f"{BASE}/recipes/999/items/",
            {"material": flour.pk, "quantity": "1", "unit": "g"},
            format="json",
        )
        assert response.status_code == 404

    def test_add_item_non_integer_material(self, api_client, recipe):
        response = api_client.post(
            f"{BASE}/recipes/{recipe.pk}/items/",
            {"material": "abc", "quantity": "1", "unit": "g"},
            format="json",
        )

        assert response.status_code == 400
        assert "material" in response.data
        assert not RecipeItem.objects.exists()

    def test_add_item_float_quantity(self, api_client, recipe, flour):
        response = api_client.post(
            f"{BASE}/recipes/{recipe.pk}/items/",
            {"material": flour.pk, "quantity": 0.1, "unit": "g"},
            format="json",
        )

        assert response.status_code == 201
        assert Decimal(response.data["quantity"]) == Decimal("0.1")
        assert Decimal(response.data["estimated_cost"]) == Decimal("0.001")

    def test_add_item_small_quantity(self, api_client, recipe, flour):
        response = api_client.post(
            f"{BASE}/recipes/{recipe.pk}/items/",
            {"material": flour.pk, "quantity": "0.0005", "unit": "g"},
            format="json",
        )
        assert response.status_code == 201

    def test_add_item_missing_fields(self, api_client, recipe):
        response = api_client.post(f"{BASE}/recipes/{recipe.pk}/items/", {}, format="json")

        assert response.status_code == 400
        assert set(response.data) == {"material", "quantity", "unit"}

    def test_patch_item(self, api_client, costed_recipe, egg):
        item = RecipeItem.objects.get(recipe=costed_recipe, material=egg)

        response = api_client.patch(
            f"{BASE}/recipe-items/{item.pk}/", {"quantity": "2"}, format="json"
        )

        assert response.status_code == 200
        assert Decimal(response.data["estimated_cost"]) == Decimal("16.00")
        costed_recipe.refresh_from_db()
        assert costed_recipe.estimated_cost == Decimal("21.00")

    def test_delete_item(self, api_client, costed_recipe, sugar):
        item = RecipeItem.objects.get(recipe=costed_recipe, material=sugar)

        response = api_client.delete(f"{BASE}/recipe-items/{item.pk}/")

        assert response.status_code == 204
        costed_recipe.refresh_from_db()
        assert costed_recipe.estimated_cost == Decimal("26.00")

    def test_retrieve_missing_item(self, api_client, db):
        response = api_client.get(f"{BASE}/recipe-items/999/")

        assert response.status_code == 404
        assert response.data["code"] == "RECIPE_ITEM_NOT_FOUND"
