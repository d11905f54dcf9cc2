"""
Views for the affiliates app.

Management endpoints are restricted to platform admins.  The tracked
link redirect, the affiliate landing data and the affiliate checkout are
public.
"""
from __future__ import annotations

import logging

import stripe
from django.conf import settings
from django.http import HttpResponseRedirect
from django.views import View
from rest_framework import mixins, permissions, status, views, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from billing.plans import PLAN_CONFIGS, PLAN_ENTERPRISE, PLAN_PROFESSIONAL
from billing.views import request_origin
from common.permissions import IsPlatformAdmin
from . import services
from .models import (
    Affiliate,
    AffiliateCommission,
    AffiliateCoupon,
    AffiliateLink,
    AffiliateSale,
    AffiliateStripeProduct,
)
from .serializers import (
    AffiliateCheckoutSerializer,
    AffiliateCommissionSerializer,
    AffiliateCouponSerializer,
    AffiliateLinkSerializer,
    AffiliateSaleSerializer,
    AffiliateSerializer,
    AffiliateStripeProductSerializer,
    CommissionPaymentSerializer,
    CreateAffiliateCouponSerializer,
)

logger = logging.getLogger(__name__)


class AffiliateViewSet(viewsets.ModelViewSet):
    queryset = Affiliate.objects.all()
    serializer_class = AffiliateSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["status"]

    def perform_create(self, serializer):
        affiliate = serializer.save(
            created_by=self.request.user,
            affiliate_code=services.generate_affiliate_code(serializer.validated_data["name"]),
        )
        AffiliateLink.objects.create(affiliate=affiliate, link_code=services.generate_link_code(affiliate))

    def perform_destroy(self, instance):
        # Sales and commissions are financial history and stay attached.
        if instance.sales.exists() or instance.commissions.exists():
            services.deactivate_affiliate(instance)
            return
        instance.delete()

    @action(detail=True, methods=["get"])
    def stats(self, request, pk=None):
        return Response(services.affiliate_stats(self.get_object()))

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        return Response(services.affiliate_stats())

    @action(detail=True, methods=["post"], url_path="create-products")
    def create_products(self, request, pk=None):
        try:
            rows = services.create_affiliate_products(self.get_object())
        except stripe.StripeError as exc:
            logger.error("Creating Stripe products failed for affiliate %s: %s", pk, exc)
            return Response({"success": False, "error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(
            {"success": True, "products": AffiliateStripeProductSerializer(rows, many=True).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], url_path="sync-sales")
    def sync_sales(self, request):
        try:
            return Response(services.sync_affiliate_sales())
        except stripe.StripeError as exc:
            logger.error("Affiliate sales sync failed: %s", exc)
            return Response({"success": False, "error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)


class AffiliateLinkViewSet(viewsets.ModelViewSet):
    queryset = AffiliateLink.objects.select_related("affiliate")
    serializer_class = AffiliateLinkSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["affiliate", "is_active"]

    def perform_create(self, serializer):
        affiliate = serializer.validated_data["affiliate"]
        serializer.save(link_code=services.generate_link_code(affiliate))


class AffiliateStripeProductViewSet(viewsets.ModelViewSet):
    queryset = AffiliateStripeProduct.objects.all()
    serializer_class = AffiliateStripeProductSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["affiliate", "plan_type", "billing"]


class AffiliateCouponViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.UpdateModelMixin,
                             viewsets.GenericViewSet):
    queryset = AffiliateCoupon.objects.select_related("affiliate")
    serializer_class = AffiliateCouponSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["affiliate", "is_active"]

    def create(self, request):
        serializer = CreateAffiliateCouponSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            coupon = services.create_affiliate_coupon(
                data["affiliate"],
                data["name"],
                data["discount_type"],
                data["discount_value"],
                description=data["description"],
                max_redemptions=data.get("max_redemptions"),
                expires_at=data.get("expires_at"),
            )
        except stripe.StripeError as exc:
            logger.error("Stripe coupon creation failed: %s", exc)
            return Response({"success": False, "error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(
            {"success": True, "coupon": AffiliateCouponSerializer(coupon).data}, status=status.HTTP_201_CREATED
        )


class AffiliateSaleViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AffiliateSale.objects.select_related("affiliate", "link")
    serializer_class = AffiliateSaleSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["affiliate", "status", "plan_type"]


class AffiliateCommissionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AffiliateCommission.objects.select_related("affiliate")
    serializer_class = AffiliateCommissionSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["affiliate", "status"]

    def _move(self, request, new_status):
        serializer = CommissionPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        commission = services.transition_commission(self.get_object(), new_status, **serializer.validated_data)
        return Response(self.get_serializer(commission).data)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._move(request, AffiliateCommission.STATUS_APPROVED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self._move(request, AffiliateCommission.STATUS_CANCELLED)

    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        return self._move(request, AffiliateCommission.STATUS_PAID)


class AffiliateRedirectView(View):
    """`/r/<code>/`: remember the referral in a cookie and open the affiliate's plan page."""

    def get(self, request, code):
        link = services.find_link(code)
        if link is None:
            return HttpResponseRedirect(f"{settings.FRONTEND_URL}/planos")
        services.register_click(link)
        response = HttpResponseRedirect(f"{settings.FRONTEND_URL}/affiliate/{link.link_code}")
        response.set_cookie(
            settings.AFFILIATE_COOKIE_NAME,
            link.link_code,
            max_age=settings.AFFILIATE_COOKIE_DAYS * 24 * 60 * 60,
            samesite="Lax",
            secure=request.is_secure(),
        )
        return response


class AffiliateLandingView(views.APIView):
    """Public data for an affiliate's plan selector."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request, code):
        link = services.find_link(code)
        if link is None:
            return Response({"detail": "Link de afiliado inválido."}, status=status.HTTP_404_NOT_FOUND)
        plans = [
            {"id": plan, "name": PLAN_CONFIGS[plan]["name"], "price": PLAN_CONFIGS[plan]["price"],
             "price_yearly": PLAN_CONFIGS[plan]["price_yearly"]}
            for plan in (PLAN_PROFESSIONAL, PLAN_ENTERPRISE)
        ]
        return Response({"affiliate_name": link.affiliate.name, "link_code": link.link_code, "plans": plans})


class AffiliateCheckoutView(views.APIView):
    """Checkout with the affiliate's price and coupon; the code may come from the referral cookie."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = AffiliateCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        code = data["affiliate_code"] or request.COOKIES.get(settings.AFFILIATE_COOKIE_NAME, "")
        user = None if data["direct"] else request.user
        try:
            result = services.create_affiliate_checkout(
                data["plan_type"], data["billing"], code, request_origin(request), user=user
            )
        except stripe.StripeError as exc:
            logger.error("Affiliate checkout failed (code=%s): %s", code, exc)
            return Response({"error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(result)
