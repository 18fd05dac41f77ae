"""
Formulary Exceptions.

All formulary business errors are FormulaError subclasses.
Field-level validation uses django.core.exceptions.ValidationError
(raised by Model.full_clean() before anything is written).
"""

from typing import Any


class FormulaError(Exception):
    """
    Base exception for all Formulary errors.

    Usage:
        raise FormulaError('MATERIAL_NOT_FOUND', material_id=42)

    Attributes:
        code: Error code (RECIPE_NOT_FOUND, MATERIAL_NOT_FOUND, etc.)
        details: Additional context as keyword arguments
    """

    def __init__(self, code: str, **details: Any):
        self.code = code
        self.details = details
        message = f"{code}: {details}" if details else code
        super().__init__(message)

    def as_dict(self) -> dict:
        """Return error as dictionary for API responses."""
        return {"code": self.code, **self.details}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{type(self).__name__}({self.code}: {details_str})"
        return f"{type(self).__name__}({self.code})"


class NotFound(FormulaError):
    """The id does not resolve to an existing row."""


class InvalidOperation(FormulaError):
    """A business rule rejected the mutation."""


class UnknownReference(NotFound, InvalidOperation):
    """
    A mutation referenced a row that does not exist.

    E.g. adding a recipe item for a material id that resolves to nothing.
    Catchable as either NotFound or InvalidOperation.
    """


# Common error codes
# MATERIAL_NOT_FOUND: Material does not exist
# PRODUCT_NOT_FOUND: Product does not exist
# RECIPE_NOT_FOUND: Recipe does not exist
# RECIPE_ITEM_NOT_FOUND: RecipeItem does not exist
