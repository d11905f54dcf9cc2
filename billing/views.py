"""
Views for the billing app.

Exposes the plan catalogue, the caller's usage against their plan,
Stripe checkout, subscription refresh, in-app coupon redemption and the
Stripe webhook.  All endpoints require authentication except the plan
catalogue and the webhook, which relies solely on signature verification.
"""
from __future__ import annotations

import json
import logging

import stripe
from django.conf import settings
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import permissions, status, views, viewsets
from rest_framework.response import Response

from common.exceptions import BusinessRuleError
from common.permissions import IsPlatformAdmin
from . import services
from .limits import usage_summary
from .models import Invoice, PromotionalCoupon, Subscription
from .plans import PLAN_CONFIGS
from .serializers import (
    ApplyCouponSerializer,
    CheckoutRequestSerializer,
    InvoiceSerializer,
    PlanSerializer,
    PromotionalCouponSerializer,
    SubscriptionSerializer,
)
from .tasks import process_checkout_completed, process_invoice_paid, process_subscription_deleted

logger = logging.getLogger("billing.webhooks")


def request_origin(request) -> str:
    return (request.headers.get("Origin") or settings.FRONTEND_URL).rstrip("/")


class PlanListView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        data = [{"id": key, **cfg} for key, cfg in PLAN_CONFIGS.items()]
        return Response(PlanSerializer(data, many=True).data)


class UsageView(views.APIView):
    """Current plan, limits and usage of the authenticated user."""

    def get(self, request):
        return Response(usage_summary(request.user))


class CheckoutView(views.APIView):
    """Create a Stripe Checkout session for a plan subscription."""

    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = services.create_checkout_session(
                request.user,
                serializer.validated_data["plan"],
                serializer.validated_data["billing"],
                request_origin(request),
            )
        except stripe.StripeError as exc:
            logger.error("Checkout failed for user %s: %s", request.user.id, exc)
            return Response({"error": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(result)


class CheckSubscriptionView(views.APIView):
    def post(self, request):
        try:
            return Response(services.check_subscription(request.user))
        except stripe.StripeError as exc:
            logger.error("Subscription check failed for user %s: %s", request.user.id, exc)
            return Response(services.subscription_check_failed(request.user, exc))


class ApplyCouponView(views.APIView):
    def post(self, request):
        serializer = ApplyCouponSerializer(data=request.data)
        if not serializer.is_valid():
            message = serializer.errors["code"][0]
            return Response({"success": False, "error": str(message)}, status=status.HTTP_400_BAD_REQUEST)
        try:
            result = services.apply_promotional_coupon(request.user, serializer.validated_data["code"])
        except BusinessRuleError as exc:
            return Response({"success": False, "error": str(exc.detail)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result)


class SubscriptionViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SubscriptionSerializer

    def get_queryset(self):
        return Subscription.objects.filter(user=self.request.user)


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = InvoiceSerializer

    def get_queryset(self):
        return Invoice.objects.filter(user=self.request.user)


class PromotionalCouponViewSet(viewsets.ModelViewSet):
    """Back-office management of in-app promotional coupons."""

    queryset = PromotionalCoupon.objects.all()
    serializer_class = PromotionalCouponSerializer
    permission_classes = [IsPlatformAdmin]

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


WEBHOOK_HANDLERS = {
    "checkout.session.completed": process_checkout_completed,
    "invoice.payment_succeeded": process_invoice_paid,
    "customer.subscription.deleted": process_subscription_deleted,
}


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(views.APIView):
    """Handle incoming Stripe webhook events."""

    permission_classes = []  # no authentication
    authentication_classes = []

    def post(self, request):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        if not sig_header:
            return JsonResponse({"error": "Missing stripe-signature header"}, status=400)

        try:
            stripe.Webhook.construct_event(
                payload=payload, sig_header=sig_header, secret=settings.STRIPE_WEBHOOK_SECRET
            )
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Rejected Stripe webhook: %s", exc)
            return JsonResponse({"error": f"Webhook signature verification failed: {exc}"}, status=400)

        event = json.loads(payload)
        event_type = event.get("type")
        data_obj = event.get("data", {}).get("object", {})
        handler = WEBHOOK_HANDLERS.get(event_type)
        if handler is None:
            logger.info("Ignoring Stripe event %s", event_type)
            return JsonResponse({"received": True})

        try:
            handler.delay(data_obj)
        except Exception:
            logger.exception("Stripe event %s (%s) failed", event.get("id"), event_type)
            return JsonResponse({"error": "Webhook handler failed"}, status=500)
        return JsonResponse({"received": True})
