"""
Tests for partial update requests (formulary.updates).
"""

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from formulary.updates import (
    UNSET,
    MaterialUpdate,
    RecipeItemUpdate,
    RecipeUpdate,
    as_update,
)


class TestUnset:
    def test_is_falsy_singleton(self):
        assert not UNSET
        assert type(UNSET)() is UNSET
        assert repr(UNSET) == "UNSET"


class TestChanges:
    def test_only_supplied_fields(self):
        update = MaterialUpdate(cost_per_unit=Decimal("0.012"))
        assert update.changes() == {"cost_per_unit": Decimal("0.012")}

    def test_empty_update(self):
        assert MaterialUpdate().is_empty()
        assert not MaterialUpdate(name="Farinha").is_empty()

    def test_none_clears_optional_text(self):
        update = MaterialUpdate(supplier=None, description=None)
        assert update.changes() == {"supplier": "", "description": ""}

    def test_none_kept_for_other_fields(self):
        """None on a required field is passed through so validation rejects it."""
        assert MaterialUpdate(name=None).changes() == {"name": None}

    def test_false_is_a_value(self):
        assert RecipeUpdate(is_primary=False).changes() == {"is_primary": False}

    def test_recipe_clearable_fields(self):
        update = RecipeUpdate(instructions=None, approved_by=None)
        assert update.changes() == {"instructions": "", "approved_by": ""}


class TestFromData:
    def test_builds_from_mapping(self):
        update = RecipeItemUpdate.from_data({"quantity": "120", "notes": None})
        assert update.quantity == "120"
        assert update.changes() == {"quantity": "120", "notes": ""}

    def test_rejects_unknown_and_derived_fields(self):
        with pytest.raises(ValidationError) as exc:
            RecipeItemUpdate.from_data({"estimated_cost": "1", "foo": 2})
        assert set(exc.value.message_dict) == {"estimated_cost", "foo"}


class TestAsUpdate:
    def test_instance_passthrough(self):
        update = MaterialUpdate(name="X")
        assert as_update(update, MaterialUpdate) is update

    def test_mapping(self):
        update = as_update({"name": "X"}, MaterialUpdate)
        assert isinstance(update, MaterialUpdate)
        assert update.name == "X"

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            as_update(["name"], MaterialUpdate)

    def test_wrong_update_class(self):
        with pytest.raises(TypeError):
            as_update(RecipeUpdate(name="X"), MaterialUpdate)
