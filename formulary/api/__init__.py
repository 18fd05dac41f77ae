"""
Formulary REST API.

Provides DRF ViewSets for:
- Material (CRUD, soft delete while in use)
- Product (CRUD + recipes)
- Recipe (CRUD + set-primary, items, cost, update-cost)
- RecipeItem (retrieve, update, delete)
"""
