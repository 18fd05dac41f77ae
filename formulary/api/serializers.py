"""
Formulary API Serializers.

Model serializers render responses. The *Input serializers type and
validate request data before it reaches the formula facade, which
then runs Model.full_clean() on the result.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from formulary.models import (
    Material,
    MaterialCategory,
    Product,
    ProductCategory,
    Recipe,
    RecipeItem,
    RecipeItemType,
    RecipeStatus,
)


class MaterialSerializer(serializers.ModelSerializer):
    """Serializer for Material model."""

    is_below_minimum = serializers.BooleanField(read_only=True)

    class Meta:
        model = Material
        fields = [
            "id",
            "name",
            "description",
            "category",
            "unit",
            "cost_per_unit",
            "supplier",
            "stock_quantity",
            "minimum_stock",
            "is_below_minimum",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for Product model."""

    primary_recipe = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "code",
            "description",
            "category",
            "standard_yield",
            "yield_unit",
            "production_minutes",
            "standard_price",
            "primary_recipe",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_primary_recipe(self, obj) -> int | None:
        recipe = obj.primary_recipe
        return recipe.pk if recipe else None


class RecipeItemSerializer(serializers.ModelSerializer):
    """Serializer for RecipeItem model."""

    material_name = serializers.CharField(source="material.name", read_only=True)

    class Meta:
        model = RecipeItem
        fields = [
            "id",
            "recipe",
            "material",
            "material_name",
            "quantity",
            "unit",
            "conversion_ratio",
            "sort_order",
            "item_type",
            "is_optional",
            "notes",
            "estimated_cost",
        ]
        read_only_fields = fields


class RecipeSerializer(serializers.ModelSerializer):
    """Serializer for Recipe model (listings)."""

    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Recipe
        fields = [
            "id",
            "product",
            "product_name",
            "name",
            "version",
            "description",
            "batch_yield",
            "status",
            "is_primary",
            "instructions",
            "estimated_cost",
            "created_by",
            "approved_by",
            "approved_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RecipeDetailSerializer(RecipeSerializer):
    """Recipe with its items, ordered as list_items() orders them."""

    items = serializers.SerializerMethodField()

    class Meta(RecipeSerializer.Meta):
        fields = RecipeSerializer.Meta.fields + ["items"]
        read_only_fields = fields

    def get_items(self, obj) -> list[dict]:
        items = sorted(obj.items.all(), key=lambda i: (i.sort_order, i.material.name))
        return RecipeItemSerializer(items, many=True).data


class RecipeReferenceSerializer(serializers.ModelSerializer):
    """Short recipe reference (where a material is used)."""

    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Recipe
        fields = ["id", "name", "version", "product", "product_name"]
        read_only_fields = fields


class MaterialDetailSerializer(MaterialSerializer):
    """Material with the recipes that use it."""

    used_in = serializers.SerializerMethodField()

    class Meta(MaterialSerializer.Meta):
        fields = MaterialSerializer.Meta.fields + ["used_in"]
        read_only_fields = fields

    def get_used_in(self, obj) -> list[dict]:
        return RecipeReferenceSerializer(obj.recipes_using(), many=True).data


# ══════════════════════════════════════════════════════════════
# REQUEST INPUT
# ══════════════════════════════════════════════════════════════


def optional_text(max_length: int) -> serializers.CharField:
    """Optional text; null clears it."""
    return serializers.CharField(
        max_length=max_length, required=False, allow_blank=True, allow_null=True
    )


def cost(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=18, decimal_places=4, **kwargs)


def amount(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=18, decimal_places=6, **kwargs)


class InputSerializer(serializers.Serializer):
    """Request body that rejects keys it does not declare."""

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(
                {key: _("Campo desconhecido ou somente leitura.") for key in unknown}
            )
        return attrs


class MaterialInputSerializer(InputSerializer):
    """Create a material."""

    name = serializers.CharField(max_length=100)
    description = optional_text(500)
    category = serializers.ChoiceField(choices=MaterialCategory.choices, required=False)
    unit = serializers.CharField(max_length=20)
    cost_per_unit = cost(required=False)
    supplier = optional_text(200)
    stock_quantity = cost(required=False)
    minimum_stock = cost(required=False)


class MaterialUpdateInputSerializer(MaterialInputSerializer):
    """Change a material (use with partial=True)."""

    is_active = serializers.BooleanField(required=False)


class ProductInputSerializer(InputSerializer):
    """Create a product."""

    name = serializers.CharField(max_length=100)
    code = serializers.CharField(max_length=50)
    description = optional_text(1000)
    category = serializers.ChoiceField(choices=ProductCategory.choices, required=False)
    standard_yield = cost()
    yield_unit = serializers.CharField(max_length=20)
    production_minutes = serializers.IntegerField()
    standard_price = cost(required=False)


class ProductUpdateInputSerializer(ProductInputSerializer):
    """Change a product (use with partial=True)."""

    is_active = serializers.BooleanField(required=False)


class RecipeInputSerializer(InputSerializer):
    """Create a recipe."""

    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    name = serializers.CharField(max_length=150)
    version = serializers.CharField(max_length=20)
    description = optional_text(1000)
    batch_yield = cost()
    instructions = optional_text(2000)
    created_by = optional_text(100)


class RecipeUpdateInputSerializer(InputSerializer):
    """Change a recipe (use with partial=True)."""

    name = serializers.CharField(max_length=150)
    version = serializers.CharField(max_length=20)
    description = optional_text(1000)
    batch_yield = cost()
    status = serializers.ChoiceField(choices=RecipeStatus.choices)
    is_primary = serializers.BooleanField()
    instructions = optional_text(2000)
    approved_by = optional_text(100)


class RecipeItemUpdateInputSerializer(InputSerializer):
    """Change a recipe item (use with partial=True)."""

    quantity = amount()
    unit = serializers.CharField(max_length=20)
    conversion_ratio = amount(required=False)
    sort_order = serializers.IntegerField(required=False)
    item_type = serializers.ChoiceField(choices=RecipeItemType.choices, required=False)
    is_optional = serializers.BooleanField(required=False)
    notes = optional_text(300)


class RecipeItemInputSerializer(RecipeItemUpdateInputSerializer):
    """Add a material to a recipe."""

    material = serializers.IntegerField(source="material_id", min_value=1)


# ══════════════════════════════════════════════════════════════
# QUERY PARAMETERS
# ══════════════════════════════════════════════════════════════


class ListQuerySerializer(serializers.Serializer):
    """Search and paging parameters (page bounds are checked by paginate)."""

    search = serializers.CharField(required=False, allow_blank=True)
    page = serializers.IntegerField(required=False, default=1)
    page_size = serializers.IntegerField(required=False)


class MaterialListQuerySerializer(ListQuerySerializer):
    category = serializers.ChoiceField(choices=MaterialCategory.choices, required=False)
    only_active = serializers.BooleanField(required=False, default=False)


class ProductListQuerySerializer(ListQuerySerializer):
    category = serializers.ChoiceField(choices=ProductCategory.choices, required=False)
    only_active = serializers.BooleanField(required=False, default=False)


class RecipeListQuerySerializer(ListQuerySerializer):
    status = serializers.ChoiceField(choices=RecipeStatus.choices, required=False)
    product = serializers.IntegerField(source="product_id", required=False, min_value=1)
