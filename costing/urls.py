"""
URL routes for the costing app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    CalculateFractionsView,
    CalculateView,
    EmployeeViewSet,
    FixedExpenseCategoryViewSet,
    FixedExpenseViewSet,
    MarkupBlockViewSet,
    RevenueEntryViewSet,
    SalesChargeViewSet,
)

router = DefaultRouter()
router.register(r"expense-categories", FixedExpenseCategoryViewSet, basename="expense-category")
router.register(r"expenses", FixedExpenseViewSet, basename="expense")
router.register(r"employees", EmployeeViewSet, basename="employee")
router.register(r"sales-charges", SalesChargeViewSet, basename="sales-charge")
router.register(r"revenue", RevenueEntryViewSet, basename="revenue")
router.register(r"markups", MarkupBlockViewSet, basename="markup")

urlpatterns = [
    path("calculate/", CalculateView.as_view(), name="markup-calculate"),
    path("calculate/fractions/", CalculateFractionsView.as_view(), name="markup-calculate-fractions"),
    path("", include(router.urls)),
]
