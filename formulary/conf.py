"""
Formulary Settings.

Supports two formats (dict takes priority):

    # Option 1: Dict
    FORMULARY = {
        "REPRICE_ON_COST_CHANGE": True,
        "DEFAULT_PAGE_SIZE": 20,
    }

    # Option 2: Flat
    FORMULARY_REPRICE_ON_COST_CHANGE = True
    FORMULARY_DEFAULT_PAGE_SIZE = 20

All settings have sensible defaults, zero configuration required.
"""

from django.conf import settings


# ── Defaults ──

DEFAULTS = {
    # Recompute item and recipe costs when a material's cost_per_unit changes
    "REPRICE_ON_COST_CHANGE": True,
    "DEFAULT_PAGE_SIZE": 20,
    "MAX_PAGE_SIZE": 100,
}


# ── Accessors ──

_sentinel = object()


def get_setting(name, default=_sentinel):
    """
    Get a formulary setting.

    Looks up in order:
    1. FORMULARY dict (e.g. FORMULARY = {"MAX_PAGE_SIZE": 50})
    2. Flat setting (e.g. FORMULARY_MAX_PAGE_SIZE = 50)
    3. DEFAULTS
    """
    formulary_dict = getattr(settings, "FORMULARY", {})
    if name in formulary_dict:
        return formulary_dict[name]

    flat_value = getattr(settings, f"FORMULARY_{name}", _sentinel)
    if flat_value is not _sentinel:
        return flat_value

    if default is not _sentinel:
        return default

    return DEFAULTS.get(name)


def reprice_on_cost_change() -> bool:
    """Whether material cost changes trigger an automatic recompute."""
    return bool(get_setting("REPRICE_ON_COST_CHANGE"))
