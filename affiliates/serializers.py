"""
Serializers for the affiliates app.
"""
from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from billing.plans import BILLING_CHOICES, BILLING_MONTHLY, PLAN_ENTERPRISE, PLAN_PROFESSIONAL
from .models import (
    Affiliate,
    AffiliateCommission,
    AffiliateCoupon,
    AffiliateLink,
    AffiliateSale,
    AffiliateStripeProduct,
)


class AffiliateSerializer(serializers.ModelSerializer):
    commission_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), required=False
    )
    commission_fixed_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False
    )

    class Meta:
        model = Affiliate
        fields = [
            "id",
            "name",
            "email",
            "phone",
            "document",
            "status",
            "affiliate_code",
            "commission_type",
            "commission_percentage",
            "commission_fixed_amount",
            "pix_key",
            "bank_details",
            "total_sales",
            "total_commissions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "affiliate_code", "total_sales", "total_commissions", "created_at", "updated_at"]

    def validate(self, attrs):
        commission_type = attrs.get("commission_type", getattr(self.instance, "commission_type", None))
        if commission_type == Affiliate.COMMISSION_PERCENTAGE:
            value = attrs.get("commission_percentage", getattr(self.instance, "commission_percentage", None))
            if not value:
                raise serializers.ValidationError({"commission_percentage": "Informe o percentual de comissão."})
        elif commission_type == Affiliate.COMMISSION_FIXED:
            value = attrs.get("commission_fixed_amount", getattr(self.instance, "commission_fixed_amount", None))
            if not value:
                raise serializers.ValidationError({"commission_fixed_amount": "Informe o valor fixo de comissão."})
        return attrs


class AffiliateLinkSerializer(serializers.ModelSerializer):
    affiliate_name = serializers.CharField(source="affiliate.name", read_only=True)
    conversion_rate = serializers.DecimalField(max_digits=7, decimal_places=2, read_only=True)

    class Meta:
        model = AffiliateLink
        fields = [
            "id",
            "affiliate",
            "affiliate_name",
            "link_code",
            "product_type",
            "is_active",
            "clicks",
            "conversions",
            "conversion_rate",
            "created_at",
        ]
        read_only_fields = ["id", "link_code", "clicks", "conversions", "created_at"]


class AffiliateStripeProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = AffiliateStripeProduct
        fields = ["id", "affiliate", "plan_type", "billing", "stripe_product_id", "stripe_price_id", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]


class AffiliateCouponSerializer(serializers.ModelSerializer):
    affiliate_name = serializers.CharField(source="affiliate.name", read_only=True)

    class Meta:
        model = AffiliateCoupon
        fields = [
            "id",
            "affiliate",
            "affiliate_name",
            "stripe_coupon_id",
            "name",
            "description",
            "discount_type",
            "discount_value",
            "max_redemptions",
            "times_redeemed",
            "expires_at",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["id", "stripe_coupon_id", "times_redeemed", "created_at"]


class CreateAffiliateCouponSerializer(serializers.Serializer):
    affiliate = serializers.PrimaryKeyRelatedField(queryset=Affiliate.objects.all())
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    discount_type = serializers.ChoiceField(choices=AffiliateCoupon.DISCOUNT_CHOICES)
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    max_redemptions = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["discount_type"] == AffiliateCoupon.DISCOUNT_PERCENTAGE and attrs["discount_value"] > 100:
            raise serializers.ValidationError({"discount_value": "Percentual deve ser no máximo 100."})
        expires_at = attrs.get("expires_at")
        if expires_at and expires_at <= timezone.now():
            raise serializers.ValidationError({"expires_at": "Data de expiração deve ser futura."})
        return attrs


class AffiliateSaleSerializer(serializers.ModelSerializer):
    affiliate_name = serializers.CharField(source="affiliate.name", read_only=True)
    link_code = serializers.CharField(source="link.link_code", read_only=True, default=None)

    class Meta:
        model = AffiliateSale
        fields = [
            "id",
            "affiliate",
            "affiliate_name",
            "link_code",
            "customer_email",
            "customer_name",
            "plan_type",
            "sale_amount",
            "commission_amount",
            "stripe_session_id",
            "status",
            "sale_date",
            "confirmed_at",
        ]
        read_only_fields = fields


class AffiliateCommissionSerializer(serializers.ModelSerializer):
    affiliate_name = serializers.CharField(source="affiliate.name", read_only=True)

    class Meta:
        model = AffiliateCommission
        fields = [
            "id",
            "affiliate",
            "affiliate_name",
            "sale",
            "amount",
            "status",
            "approved_at",
            "paid_at",
            "payment_method",
            "payment_reference",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class CommissionPaymentSerializer(serializers.Serializer):
    payment_method = serializers.CharField(max_length=32, required=False, allow_blank=True, default="pix")
    payment_reference = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AffiliateCheckoutSerializer(serializers.Serializer):
    plan_type = serializers.ChoiceField(choices=[PLAN_PROFESSIONAL, PLAN_ENTERPRISE])
    billing = serializers.ChoiceField(choices=BILLING_CHOICES, default=BILLING_MONTHLY)
    affiliate_code = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    direct = serializers.BooleanField(default=False)
