"""
Formulary Signal Handlers.

Keeps stored item and recipe costs in step with material prices.

This module is imported in apps.py to register handlers.
"""

import logging

from django.dispatch import receiver

from formulary.conf import reprice_on_cost_change
from formulary.signals import material_cost_changed

logger = logging.getLogger(__name__)


@receiver(material_cost_changed)
def reprice_recipes_using_material(sender, material, previous, current, **kwargs):
    """
    When a material's unit cost changes, recompute every recipe using it.

    Runs inside the update's transaction, so a failure rolls back the
    cost change too. Disabled with FORMULARY_REPRICE_ON_COST_CHANGE = False.
    """
    if not reprice_on_cost_change():
        logger.debug(
            f"Repricing disabled, {material.name} cost {previous} -> {current} not propagated",
            extra={"material": material.pk},
        )
        return

    from formulary.service import Formula

    recipes = Formula.reprice_material(material.pk)

    logger.info(
        f"{material.name} cost {previous} -> {current}: repriced {len(recipes)} recipes",
        extra={
            "material": material.pk,
            "previous": str(previous),
            "current": str(current),
            "recipes": [r.pk for r in recipes],
        },
    )
