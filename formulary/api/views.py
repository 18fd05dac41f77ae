"""
Formulary API ViewSets.

Request data is typed and validated by the input serializers; every
write then goes through the formula facade so the API shares its
locking, cost recompute and model validation with Python callers.
"""

from django.core.exceptions import ValidationError
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from formulary.exceptions import InvalidOperation, NotFound
from formulary.service import Formula

from .serializers import (
    MaterialDetailSerializer,
    MaterialInputSerializer,
    MaterialListQuerySerializer,
    MaterialSerializer,
    MaterialUpdateInputSerializer,
    ProductInputSerializer,
    ProductListQuerySerializer,
    ProductSerializer,
    ProductUpdateInputSerializer,
    RecipeDetailSerializer,
    RecipeInputSerializer,
    RecipeItemInputSerializer,
    RecipeItemSerializer,
    RecipeItemUpdateInputSerializer,
    RecipeListQuerySerializer,
    RecipeSerializer,
    RecipeUpdateInputSerializer,
)


def _page_response(page, serializer_class) -> Response:
    return Response(
        {
            "count": page.total,
            "page": page.page,
            "page_size": page.page_size,
            "num_pages": page.num_pages,
            "results": serializer_class(page.items, many=True).data,
        }
    )


class FormulaViewSetMixin:
    """
    Translate formulary errors into HTTP responses.

    InvalidOperation is checked first: a missing material referenced from
    a request body is a bad request, not a missing URL resource.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def handle_exception(self, exc):
        if isinstance(exc, InvalidOperation):
            return Response(exc.as_dict(), status=status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, NotFound):
            return Response(exc.as_dict(), status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, ValidationError):
            body = exc.message_dict if hasattr(exc, "error_dict") else {"errors": exc.messages}
            return Response(body, status=status.HTTP_400_BAD_REQUEST)
        return super().handle_exception(exc)

    def validated(self, serializer_class, data, partial=False) -> dict:
        """validated_data of the input serializer; DRF answers 400 otherwise."""
        serializer = serializer_class(data=data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return dict(serializer.validated_data)


class MaterialViewSet(FormulaViewSetMixin, viewsets.ViewSet):
    """
    ViewSet for Material.

    list: Search materials (search, category, only_active, page, page_size)
    create: Create a material
    retrieve: Get a material and the recipes using it
    update / partial_update: Change the supplied fields
    destroy: Delete, or deactivate while recipes still use it
    """

    def list(self, request):
        params = self.validated(MaterialListQuerySerializer, request.query_params)
        return _page_response(Formula.list_materials(**params), MaterialSerializer)

    def create(self, request):
        material = Formula.create_material(
            **self.validated(MaterialInputSerializer, request.data)
        )
        return Response(MaterialSerializer(material).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(MaterialDetailSerializer(Formula.get_material(pk)).data)

    def partial_update(self, request, pk=None):
        changes = self.validated(MaterialUpdateInputSerializer, request.data, partial=True)
        material = Formula.update_material(pk, changes)
        return Response(MaterialSerializer(material).data)

    update = partial_update

    def destroy(self, request, pk=None):
        Formula.delete_material(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductViewSet(FormulaViewSetMixin, viewsets.ViewSet):
    """
    ViewSet for Product.

    list: Search products (search, category, only_active, page, page_size)
    create / retrieve / update / partial_update / destroy
    recipes: Recipes of the product, primary first
    """

    def list(self, request):
        params = self.validated(ProductListQuerySerializer, request.query_params)
        return _page_response(Formula.list_products(**params), ProductSerializer)

    def create(self, request):
        product = Formula.create_product(
            **self.validated(ProductInputSerializer, request.data)
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(ProductSerializer(Formula.get_product(pk)).data)

    def partial_update(self, request, pk=None):
        changes = self.validated(ProductUpdateInputSerializer, request.data, partial=True)
        product = Formula.update_product(pk, changes)
        return Response(ProductSerializer(product).data)

    update = partial_update

    def destroy(self, request, pk=None):
        Formula.delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def recipes(self, request, pk=None):
        """
        Recipes of a product.

        GET /api/formulary/products/{pk}/recipes/
        """
        recipes = Formula.recipes_for_product(pk)
        return Response(RecipeSerializer(recipes, many=True).data)


class RecipeViewSet(FormulaViewSetMixin, viewsets.ViewSet):
    """
    ViewSet for Recipe.

    list: Search recipes (search, status, product, page, page_size)
    create / retrieve / update / partial_update / destroy
    set_primary: Make the recipe its product's primary recipe
    items: List or add recipe items
    cost: Fresh cost (nothing written)
    update_cost: Recompute and store estimated_cost
    """

    def list(self, request):
        params = self.validated(RecipeListQuerySerializer, request.query_params)
        return _page_response(Formula.list_recipes(**params), RecipeSerializer)

    def create(self, request):
        data = self.validated(RecipeInputSerializer, request.data)
        product = data.pop("product")
        recipe = Formula.create_recipe(product_id=product.pk, **data)
        return Response(RecipeSerializer(recipe).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(RecipeDetailSerializer(Formula.get_recipe(pk)).data)

    def partial_update(self, request, pk=None):
        changes = self.validated(RecipeUpdateInputSerializer, request.data, partial=True)
        recipe = Formula.update_recipe(pk, changes)
        return Response(RecipeSerializer(recipe).data)

    update = partial_update

    def destroy(self, request, pk=None):
        Formula.delete_recipe(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="set-primary")
    def set_primary(self, request, pk=None):
        """
        Make this the product's primary recipe.

        POST /api/formulary/recipes/{pk}/set-primary/
        """
        recipe = Formula.set_primary_recipe(pk)
        return Response(RecipeSerializer(recipe).data)

    @action(detail=True, methods=["get", "post"])
    def items(self, request, pk=None):
        """
        List or add recipe items.

        GET  /api/formulary/recipes/{pk}/items/
        POST /api/formulary/recipes/{pk}/items/
        {
            "material": 3,
            "quantity": "500",
            "unit": "g"
        }
        """
        if request.method == "GET":
            return Response(RecipeItemSerializer(Formula.list_items(pk), many=True).data)

        item = Formula.add_item(pk, **self.validated(RecipeItemInputSerializer, request.data))
        return Response(RecipeItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def cost(self, request, pk=None):
        """
        Fresh sum of the item costs.

        GET /api/formulary/recipes/{pk}/cost/
        """
        total = Formula.calculate_recipe_cost(pk)
        return Response({"recipe": int(pk), "cost": str(total)})

    @action(detail=True, methods=["post"], url_path="update-cost")
    def update_cost(self, request, pk=None):
        """
        Recompute and store estimated_cost.

        POST /api/formulary/recipes/{pk}/update-cost/
        """
        Formula.update_recipe_cost(pk)
        recipe = Formula.get_recipe(pk)
        return Response({"recipe": recipe.pk, "estimated_cost": str(recipe.estimated_cost)})


class RecipeItemViewSet(FormulaViewSetMixin, viewsets.ViewSet):
    """
    ViewSet for RecipeItem (items are created under recipes/{pk}/items/).

    retrieve / update / partial_update / destroy
    """

    def retrieve(self, request, pk=None):
        return Response(RecipeItemSerializer(Formula.get_item(pk)).data)

    def partial_update(self, request, pk=None):
        changes = self.validated(RecipeItemUpdateInputSerializer, request.data, partial=True)
        item = Formula.update_item(pk, changes)
        return Response(RecipeItemSerializer(item).data)

    update = partial_update

    def destroy(self, request, pk=None):
        Formula.remove_item(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
