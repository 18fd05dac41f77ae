"""
Formulary Signals.

Cost and lifecycle changes are broadcast as signals so other apps
(pricing, stock, notifications) can react without coupling.

Signals:
    recipe_cost_changed: A recipe's estimated_cost was recomputed to a new value
    primary_recipe_changed: A recipe became its product's primary recipe
    material_retired: A material was deleted or deactivated
    material_cost_changed: A material's cost_per_unit changed
"""

from django.dispatch import Signal

# Recipe total changed
# Sent by Recipe.update_cost()
# Args: recipe, previous, current
recipe_cost_changed = Signal()

# Primary recipe designated
# Sent by Recipe.set_primary()
# Args: recipe, demoted (list of recipes that lost the flag)
primary_recipe_changed = Signal()

# Material deleted or deactivated
# Sent by Material.retire()
# Args: material, hard_deleted
material_retired = Signal()

# Material unit cost changed
# Sent by formula.update_material()
# Args: material, previous, current
material_cost_changed = Signal()

__all__ = [
    "recipe_cost_changed",
    "primary_recipe_changed",
    "material_retired",
    "material_cost_changed",
]
