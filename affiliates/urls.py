"""
URL routes for the affiliates app.

The public tracked-link redirect lives at the site root (`/r/<code>/`).
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AffiliateCheckoutView,
    AffiliateCommissionViewSet,
    AffiliateCouponViewSet,
    AffiliateLandingView,
    AffiliateLinkViewSet,
    AffiliateSaleViewSet,
    AffiliateStripeProductViewSet,
    AffiliateViewSet,
)

router = DefaultRouter()
router.register(r"affiliates", AffiliateViewSet, basename="affiliate")
router.register(r"links", AffiliateLinkViewSet, basename="affiliate-link")
router.register(r"stripe-products", AffiliateStripeProductViewSet, basename="affiliate-stripe-product")
router.register(r"coupons", AffiliateCouponViewSet, basename="affiliate-coupon")
router.register(r"sales", AffiliateSaleViewSet, basename="affiliate-sale")
router.register(r"commissions", AffiliateCommissionViewSet, basename="affiliate-commission")

urlpatterns = [
    path("checkout/", AffiliateCheckoutView.as_view(), name="affiliate-checkout"),
    path("public/<str:code>/", AffiliateLandingView.as_view(), name="affiliate-landing"),
    path("", include(router.urls)),
]
