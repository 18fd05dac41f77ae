"""
Shared field validators.

Minimums follow the persisted precision: yields and quantities must be
at least one unit of their last decimal place.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from formulary.costing import to_decimal

non_negative = MinValueValidator(Decimal("0"), message=_("Não pode ser negativo."))
positive_yield = MinValueValidator(Decimal("0.0001"), message=_("Deve ser maior que zero."))
positive_quantity = MinValueValidator(Decimal("0.000001"), message=_("Deve ser maior que zero."))
positive_ratio = MinValueValidator(Decimal("0.000001"), message=_("Deve ser maior que zero."))
positive_minutes = MinValueValidator(1, message=_("Deve ser maior que zero."))


def coerce_decimals(instance) -> None:
    """
    Replace float values on DecimalFields with their printed Decimal.

    0.1 becomes Decimal("0.1"), not the binary expansion Django would
    otherwise validate against decimal_places.
    """
    for field in instance._meta.concrete_fields:
        if isinstance(field, models.DecimalField):
            value = getattr(instance, field.attname)
            if isinstance(value, float):
                setattr(instance, field.attname, to_decimal(value))


def check_required_text(instance, *field_names: str) -> None:
    """
    Reject required text fields that hold only whitespace.

    Django's blank check already rejects "", this also catches "   ".
    """
    errors = {}
    for name in field_names:
        value = getattr(instance, name, None)
        if isinstance(value, str) and value and not value.strip():
            errors[name] = _("Este campo não pode ficar em branco.")
    if errors:
        raise ValidationError(errors)
