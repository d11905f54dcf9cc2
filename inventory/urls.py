"""
URL routes for the inventory app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    BrandViewSet,
    CategoryViewSet,
    MovementReceiptViewSet,
    ProductViewSet,
    StockMovementViewSet,
    SupplierViewSet,
)

router = DefaultRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"brands", BrandViewSet, basename="brand")
router.register(r"suppliers", SupplierViewSet, basename="supplier")
router.register(r"movements", StockMovementViewSet, basename="movement")
router.register(r"receipts", MovementReceiptViewSet, basename="receipt")

urlpatterns = [
    path("", include(router.urls)),
]
