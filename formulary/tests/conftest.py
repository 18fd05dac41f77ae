"""
Shared fixtures for Formulary tests.

The Flour/Sugar/Egg catalog is the reference costing scenario:
Flour 200 g -> 2.00, Sugar 150 g -> 3.00, Egg 3 un -> 24.00 (total 29.00).
"""

from decimal import Decimal

import pytest

from formulary.models import Material, Product, Recipe


@pytest.fixture
def flour(db):
    return Material.objects.create(
        name="Flour",
        unit="g",
        cost_per_unit=Decimal("0.01"),
        supplier="Moinho Central",
    )


@pytest.fixture
def sugar(db):
    return Material.objects.create(
        name="Sugar",
        unit="g",
        cost_per_unit=Decimal("0.02"),
    )


@pytest.fixture
def egg(db):
    return Material.objects.create(
        name="Egg",
        unit="un",
        cost_per_unit=Decimal("8.00"),
    )


@pytest.fixture
def product(db):
    return Product.objects.create(
        name="Pão de Forma",
        code="BREAD-001",
        standard_yield=Decimal("2"),
        yield_unit="un",
        production_minutes=180,
        standard_price=Decimal("45.00"),
    )


@pytest.fixture
def recipe(db, product):
    return Recipe.objects.create(
        product=product,
        name="Pão de Forma Tradicional",
        version="1.0",
        batch_yield=Decimal("2"),
    )
