"""
URL routes for the billing app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    ApplyCouponView,
    CheckoutView,
    CheckSubscriptionView,
    InvoiceViewSet,
    PlanListView,
    PromotionalCouponViewSet,
    StripeWebhookView,
    SubscriptionViewSet,
    UsageView,
)

router = DefaultRouter()
router.register(r"subscriptions", SubscriptionViewSet, basename="subscription")
router.register(r"invoices", InvoiceViewSet, basename="invoice")
router.register(r"promotional-coupons", PromotionalCouponViewSet, basename="promotional-coupon")

urlpatterns = [
    path("plans/", PlanListView.as_view(), name="billing-plans"),
    path("usage/", UsageView.as_view(), name="billing-usage"),
    path("checkout/", CheckoutView.as_view(), name="billing-checkout"),
    path("check-subscription/", CheckSubscriptionView.as_view(), name="billing-check-subscription"),
    path("coupons/apply/", ApplyCouponView.as_view(), name="billing-apply-coupon"),
    path("webhook/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("", include(router.urls)),
]
