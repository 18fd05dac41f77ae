"""
Formulary Admin - Django admin for Material, Product, Recipe, RecipeItem.

Derived costs are read-only. Saves that affect costs go through the
formula facade (or Recipe.update_cost()) so stored totals stay in step
with the items, exactly as for API and Python callers.
"""

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _
from simple_history.admin import SimpleHistoryAdmin

from formulary.exceptions import FormulaError
from formulary.models import Material, Product, Recipe, RecipeItem
from formulary.service import Formula


# ── Material ──


@admin.register(Material)
class MaterialAdmin(SimpleHistoryAdmin):
    """Admin for materials (insumos)."""

    list_display = ("name", "category", "unit", "cost_per_unit", "stock_quantity", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name", "description", "supplier")
    readonly_fields = ("created_at", "updated_at")

    def save_model(self, request, obj, form, change):
        # Edits go through the facade so a cost change reprices its recipes
        if change:
            Formula.update_material(
                obj.pk, {field: form.cleaned_data[field] for field in form.changed_data}
            )
        else:
            super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        Formula.delete_material(obj.pk)

    def delete_queryset(self, request, queryset):
        for pk in queryset.values_list("pk", flat=True):
            Formula.delete_material(pk)


# ── Product ──


@admin.register(Product)
class ProductAdmin(SimpleHistoryAdmin):
    """Admin for products."""

    list_display = ("code", "name", "category", "standard_yield", "yield_unit", "standard_price", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("code", "name", "description")
    readonly_fields = ("created_at", "updated_at")


# ── Recipe ──


class RecipeItemInline(admin.TabularInline):
    """Inline for recipe materials."""

    model = RecipeItem
    extra = 1
    fields = ("material", "quantity", "unit", "conversion_ratio", "sort_order", "item_type", "is_optional", "estimated_cost")
    readonly_fields = ("estimated_cost",)
    autocomplete_fields = ("material",)


@admin.register(Recipe)
class RecipeAdmin(SimpleHistoryAdmin):
    """Admin for recipes (fichas técnicas)."""

    list_display = ("name", "version", "product", "status", "is_primary", "estimated_cost", "updated_at")
    list_filter = ("status", "is_primary")
    search_fields = ("name", "description", "product__name", "product__code")
    inlines = [RecipeItemInline]
    readonly_fields = ("is_primary", "estimated_cost", "approved_at", "created_at", "updated_at")
    actions = ["make_primary", "recalculate_cost"]

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        form.instance.update_cost()

    @admin.action(description=_("Definir como receita principal"))
    def make_primary(self, request, queryset):
        done = 0
        for pk in queryset.order_by("pk").values_list("pk", flat=True):
            try:
                Formula.set_primary_recipe(pk)
                done += 1
            except FormulaError as e:
                self.message_user(request, str(e), messages.ERROR)
        if done:
            self.message_user(
                request,
                _(f"{done} receita(s) definida(s) como principal."),
                messages.SUCCESS,
            )

    @admin.action(description=_("Recalcular custo"))
    def recalculate_cost(self, request, queryset):
        pks = list(queryset.values_list("pk", flat=True))
        for pk in pks:
            Formula.update_recipe_cost(pk)
        self.message_user(
            request,
            _(f"Custo recalculado para {len(pks)} receita(s)."),
            messages.SUCCESS,
        )


# ── RecipeItem ──


@admin.register(RecipeItem)
class RecipeItemAdmin(admin.ModelAdmin):
    """Admin for individual recipe items."""

    list_display = ("recipe", "material", "quantity", "unit", "estimated_cost")
    list_filter = ("item_type", "recipe__product")
    search_fields = ("recipe__name", "material__name")
    raw_id_fields = ("recipe", "material")
    readonly_fields = ("estimated_cost", "created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        # Moving an item would leave the old recipe total stale
        if obj is not None:
            return (*self.readonly_fields, "recipe", "material")
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        obj.recipe.update_cost()

    def delete_model(self, request, obj):
        Formula.remove_item(obj.pk)

    def delete_queryset(self, request, queryset):
        for pk in queryset.values_list("pk", flat=True):
            Formula.remove_item(pk)
