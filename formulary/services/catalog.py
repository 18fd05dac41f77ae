"""
Catalog service -- materials and products.

Filtered, paginated listings plus get/create/update/delete. Listings
match search terms case-insensitively (substring) and are ordered by
name. Validation errors are raised by Model.full_clean() before any
row is written.

All methods are @classmethod so the mixin can be composed into Formula
without instantiation.
"""

import logging
from collections.abc import Iterable

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils.translation import gettext_lazy as _

from formulary.conf import get_setting
from formulary.exceptions import NotFound
from formulary.models import Material, MaterialCategory, Product, ProductCategory, Recipe
from formulary.results import Page
from formulary.updates import MaterialUpdate, ProductUpdate, as_update

logger = logging.getLogger(__name__)


MATERIAL_FIELDS = frozenset({
    "name",
    "description",
    "category",
    "unit",
    "cost_per_unit",
    "supplier",
    "stock_quantity",
    "minimum_stock",
})

PRODUCT_FIELDS = frozenset({
    "name",
    "code",
    "description",
    "category",
    "standard_yield",
    "yield_unit",
    "production_minutes",
    "standard_price",
})


# ══════════════════════════════════════════════════════════════
# LISTING HELPERS
# ══════════════════════════════════════════════════════════════


def search_filter(term: str | None, fields: Iterable[str]) -> Q:
    """OR of case-insensitive substring matches; empty Q for a blank term."""
    query = Q()
    term = (term or "").strip()
    if not term:
        return query
    for field in fields:
        query |= Q(**{f"{field}__icontains": term})
    return query


def check_choice(field: str, value, choices) -> None:
    if value not in choices.values:
        raise ValidationError({field: _(f"Valor inválido: {value!r}.")})


def paginate(queryset: QuerySet, page=1, page_size=None) -> Page:
    """
    Slice a queryset into a 1-based page.

    A page past the end is empty rather than an error.
    """
    if page_size is None:
        page_size = get_setting("DEFAULT_PAGE_SIZE")
    max_page_size = get_setting("MAX_PAGE_SIZE")

    errors = {}
    try:
        page = int(page)
        if page < 1:
            errors["page"] = _("Deve ser maior que zero.")
    except (TypeError, ValueError):
        errors["page"] = _("Deve ser um número inteiro.")
    try:
        page_size = int(page_size)
        if not 1 <= page_size <= max_page_size:
            errors["page_size"] = _(f"Deve estar entre 1 e {max_page_size}.")
    except (TypeError, ValueError):
        errors["page_size"] = _("Deve ser um número inteiro.")
    if errors:
        raise ValidationError(errors)

    total = queryset.count()
    offset = (page - 1) * page_size
    items = list(queryset[offset : offset + page_size])
    return Page(items=items, page=page, page_size=page_size, total=total)


def check_fields(fields: dict, allowed: frozenset) -> None:
    """Reject unknown and derived fields on create."""
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(
            {key: _("Campo desconhecido ou somente leitura.") for key in unknown}
        )


def blank_optional(fields: dict, *names: str) -> dict:
    """None on an optional text field means empty."""
    return {
        key: ("" if value is None and key in names else value)
        for key, value in fields.items()
    }


class FormulaCatalog:
    """Material and product catalog operations."""

    # ══════════════════════════════════════════════════════════════
    # MATERIALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def list_materials(
        cls,
        search: str | None = None,
        category: str | None = None,
        only_active: bool | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        """Materials matching name, description or supplier."""
        qs = Material.objects.filter(
            search_filter(search, ("name", "description", "supplier"))
        )
        if category:
            check_choice("category", category, MaterialCategory)
            qs = qs.filter(category=category)
        if only_active:
            qs = qs.filter(is_active=True)

        return paginate(qs.order_by("name", "pk"), page, page_size)

    @classmethod
    def get_material(cls, material_id: int) -> Material:
        try:
            return Material.objects.get(pk=material_id)
        except Material.DoesNotExist:
            raise NotFound("MATERIAL_NOT_FOUND", material_id=material_id)

    @classmethod
    def recipes_using_material(cls, material_id: int) -> list[Recipe]:
        """Recipes that have an item for the material."""
        return list(cls.get_material(material_id).recipes_using())

    @classmethod
    def create_material(cls, **fields) -> Material:
        check_fields(fields, MATERIAL_FIELDS)
        material = Material(**blank_optional(fields, "description", "supplier"))
        material.save()

        logger.info(
            f"Created material {material.name}",
            extra={"material": material.pk, "cost_per_unit": str(material.cost_per_unit)},
        )

        return material

    @classmethod
    def update_material(cls, material_id: int, update: MaterialUpdate | dict) -> Material:
        """
        Apply the supplied fields.

        A cost_per_unit change emits material_cost_changed inside the
        same transaction, so repricing (when enabled) commits with it.
        """
        from formulary.signals import material_cost_changed

        changes = as_update(update, MaterialUpdate).changes()

        with transaction.atomic():
            material = Material.objects.select_for_update().filter(pk=material_id).first()
            if material is None:
                raise NotFound("MATERIAL_NOT_FOUND", material_id=material_id)

            previous_cost = material.cost_per_unit
            for field, value in changes.items():
                setattr(material, field, value)
            material.save()

            if material.cost_per_unit != previous_cost:
                material_cost_changed.send(
                    sender=Material,
                    material=material,
                    previous=previous_cost,
                    current=material.cost_per_unit,
                )

        logger.info(
            f"Updated material {material.name}",
            extra={"material": material.pk, "fields": sorted(changes)},
        )

        return material

    @classmethod
    def delete_material(cls, material_id: int) -> bool:
        """
        Delete a material, or deactivate it while recipes still use it.

        Returns True either way.
        """
        return cls.get_material(material_id).retire()

    # ══════════════════════════════════════════════════════════════
    # PRODUCTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def list_products(
        cls,
        search: str | None = None,
        category: str | None = None,
        only_active: bool | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        """Products matching name, code or description."""
        qs = Product.objects.filter(
            search_filter(search, ("name", "code", "description"))
        )
        if category:
            check_choice("category", category, ProductCategory)
            qs = qs.filter(category=category)
        if only_active:
            qs = qs.filter(is_active=True)

        return paginate(qs.order_by("name", "pk"), page, page_size)

    @classmethod
    def get_product(cls, product_id: int) -> Product:
        try:
            return Product.objects.get(pk=product_id)
        except Product.DoesNotExist:
            raise NotFound("PRODUCT_NOT_FOUND", product_id=product_id)

    @classmethod
    def create_product(cls, **fields) -> Product:
        check_fields(fields, PRODUCT_FIELDS)
        product = Product(**blank_optional(fields, "description"))
        product.save()

        logger.info(
            f"Created product {product.code}",
            extra={"product": product.pk},
        )

        return product

    @classmethod
    def update_product(cls, product_id: int, update: ProductUpdate | dict) -> Product:
        changes = as_update(update, ProductUpdate).changes()

        with transaction.atomic():
            product = Product.objects.select_for_update().filter(pk=product_id).first()
            if product is None:
                raise NotFound("PRODUCT_NOT_FOUND", product_id=product_id)

            for field, value in changes.items():
                setattr(product, field, value)
            product.save()

        logger.info(
            f"Updated product {product.code}",
            extra={"product": product.pk, "fields": sorted(changes)},
        )

        return product

    @classmethod
    def delete_product(cls, product_id: int) -> bool:
        """Delete a product together with its recipes and their items."""
        product = cls.get_product(product_id)
        code = product.code
        product.delete()

        logger.info(f"Deleted product {code}", extra={"product": product_id})

        return True
