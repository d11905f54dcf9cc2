"""
Serializers for the billing app.
"""
from __future__ import annotations

import re

from rest_framework import serializers

from .models import COUPON_CODE_RE, Invoice, PromotionalCoupon, Subscription
from .plans import BILLING_CHOICES, PLAN_ENTERPRISE, PLAN_PROFESSIONAL, PLAN_CHOICES, normalize_plan


class CheckoutRequestSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(choices=[PLAN_PROFESSIONAL, PLAN_ENTERPRISE])
    billing = serializers.ChoiceField(choices=BILLING_CHOICES, default="monthly")


class ApplyCouponSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=64)

    def validate_code(self, value):
        code = value.strip().upper()
        if not re.match(COUPON_CODE_RE, code):
            raise serializers.ValidationError(
                "Código do cupom inválido. Use apenas letras, números, _ e - (3-20 caracteres)"
            )
        return code


class SubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subscription
        fields = ["id", "stripe_subscription_id", "plan", "status", "current_period_end", "created_at"]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = ["id", "stripe_invoice_id", "amount", "currency", "status", "period_start", "period_end", "created_at"]
        read_only_fields = fields


class PromotionalCouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = PromotionalCoupon
        fields = [
            "id",
            "code",
            "description",
            "discount_type",
            "discount_value",
            "trial_days",
            "applies_to_plans",
            "max_redemptions",
            "times_redeemed",
            "expires_at",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["id", "times_redeemed", "created_at"]

    def validate_code(self, value):
        code = value.strip().upper()
        if not re.match(COUPON_CODE_RE, code):
            raise serializers.ValidationError("Use apenas letras, números, _ e - (3-20 caracteres).")
        return code

    def validate_applies_to_plans(self, value):
        plans = []
        for item in value or []:
            plan = normalize_plan(item)
            if plan is None:
                raise serializers.ValidationError(f"Plano desconhecido: {item}")
            plans.append(plan)
        return plans

    def validate(self, attrs):
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        if discount_type == PromotionalCoupon.TYPE_TRIAL:
            if not attrs.get("trial_days", getattr(self.instance, "trial_days", None)):
                raise serializers.ValidationError({"trial_days": "Informe os dias de teste."})
        elif attrs.get("discount_value", getattr(self.instance, "discount_value", None)) is None:
            raise serializers.ValidationError({"discount_value": "Informe o valor do desconto."})
        return attrs


class PlanSerializer(serializers.Serializer):
    id = serializers.ChoiceField(choices=PLAN_CHOICES)
    name = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    price_yearly = serializers.DecimalField(max_digits=10, decimal_places=2)
    limits = serializers.DictField(child=serializers.IntegerField())
