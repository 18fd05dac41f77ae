"""
Partial update requests.

Each update type lists the fields a caller may change. Every field
defaults to UNSET, which means "leave this column alone". For optional
text columns, None means "clear it".

Usage:
    from formulary.updates import MaterialUpdate

    formula.update_material(material.pk, MaterialUpdate(cost_per_unit=Decimal("0.012")))
    formula.update_material(material.pk, MaterialUpdate(supplier=None))  # clears supplier
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, ClassVar

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _


class _Unset:
    """Marker for 'field not present in the request'."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass
class _Update:
    # Optional text columns: None clears them to ""
    clearable: ClassVar[tuple[str, ...]] = ()

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller supplied."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET:
                continue
            if value is None and f.name in self.clearable:
                value = ""
            result[f.name] = value
        return result

    def is_empty(self) -> bool:
        return not self.changes()

    @classmethod
    def from_data(cls, data: Mapping[str, Any]):
        """
        Build an update from a mapping holding only the present keys.

        Unknown keys (including derived fields such as estimated_cost)
        are rejected with a field-level ValidationError.
        """
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValidationError(
                {key: _("Campo desconhecido ou somente leitura.") for key in unknown}
            )
        return cls(**{key: data[key] for key in data})


@dataclass
class MaterialUpdate(_Update):
    clearable: ClassVar[tuple[str, ...]] = ("description", "supplier")

    name: Any = UNSET
    description: Any = UNSET
    category: Any = UNSET
    unit: Any = UNSET
    cost_per_unit: Any = UNSET
    supplier: Any = UNSET
    stock_quantity: Any = UNSET
    minimum_stock: Any = UNSET
    is_active: Any = UNSET


@dataclass
class ProductUpdate(_Update):
    clearable: ClassVar[tuple[str, ...]] = ("description",)

    name: Any = UNSET
    code: Any = UNSET
    description: Any = UNSET
    category: Any = UNSET
    standard_yield: Any = UNSET
    yield_unit: Any = UNSET
    production_minutes: Any = UNSET
    standard_price: Any = UNSET
    is_active: Any = UNSET


@dataclass
class RecipeUpdate(_Update):
    clearable: ClassVar[tuple[str, ...]] = ("description", "instructions", "approved_by")

    name: Any = UNSET
    version: Any = UNSET
    description: Any = UNSET
    batch_yield: Any = UNSET
    status: Any = UNSET
    is_primary: Any = UNSET
    instructions: Any = UNSET
    approved_by: Any = UNSET


@dataclass
class RecipeItemUpdate(_Update):
    clearable: ClassVar[tuple[str, ...]] = ("notes",)

    quantity: Any = UNSET
    unit: Any = UNSET
    conversion_ratio: Any = UNSET
    sort_order: Any = UNSET
    item_type: Any = UNSET
    is_optional: Any = UNSET
    notes: Any = UNSET


def as_update(update, update_cls):
    """Accept an update object or a plain mapping of present fields."""
    if isinstance(update, update_cls):
        return update
    if isinstance(update, Mapping):
        return update_cls.from_data(update)
    raise TypeError(
        f"Expected {update_cls.__name__} or mapping, got {type(update).__name__}"
    )
