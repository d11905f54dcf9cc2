"""
URL routes for the recipes app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ProductTypeViewSet, RecipeStockMovementViewSet, RecipeStockViewSet, RecipeViewSet

router = DefaultRouter()
router.register(r"recipes", RecipeViewSet, basename="recipe")
router.register(r"product-types", ProductTypeViewSet, basename="product-type")
router.register(r"showcase/stock", RecipeStockViewSet, basename="recipe-stock")
router.register(r"showcase/movements", RecipeStockMovementViewSet, basename="recipe-stock-movement")

urlpatterns = [
    path("", include(router.urls)),
]
