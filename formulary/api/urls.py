"""
Formulary API URLs.

Include this in your project's urlpatterns:

    path('api/formulary/', include('formulary.api.urls')),
"""

from rest_framework.routers import DefaultRouter

from .views import MaterialViewSet, ProductViewSet, RecipeItemViewSet, RecipeViewSet

router = DefaultRouter()
router.register("materials", MaterialViewSet, basename="material")
router.register("products", ProductViewSet, basename="product")
router.register("recipes", RecipeViewSet, basename="recipe")
router.register("recipe-items", RecipeItemViewSet, basename="recipe-item")

urlpatterns = router.urls
