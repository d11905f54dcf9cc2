"""
Models for the affiliates app.

Affiliates promote the product through tracked links (`/r/<code>/`) and
Stripe coupons.  Each completed checkout attributed to a link becomes an
`AffiliateSale` with one `AffiliateCommission`, whose status only moves
forward: pending -> approved -> paid, or pending -> cancelled.
"""
from decimal import Decimal

from django.conf import settings
from django.db import models

from billing.plans import BILLING_CHOICES, PLAN_CHOICES


class Affiliate(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_INACTIVE = "inactive"
    STATUS_SUSPENDED = "suspended"
    STATUS_CHOICES = [(STATUS_ACTIVE, "Ativo"), (STATUS_INACTIVE, "Inativo"), (STATUS_SUSPENDED, "Suspenso")]

    COMMISSION_PERCENTAGE = "percentage"
    COMMISSION_FIXED = "fixed"
    COMMISSION_CHOICES = [(COMMISSION_PERCENTAGE, "Percentual"), (COMMISSION_FIXED, "Valor fixo")]

    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=32, blank=True)
    document = models.CharField(max_length=32, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    affiliate_code = models.CharField(max_length=32, unique=True)
    commission_type = models.CharField(max_length=16, choices=COMMISSION_CHOICES, default=COMMISSION_PERCENTAGE)
    commission_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"))
    commission_fixed_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    pix_key = models.CharField(max_length=255, blank=True)
    bank_details = models.JSONField(default=dict, blank=True)
    total_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_commissions = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.affiliate_code})"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def commission_for(self, amount: Decimal) -> Decimal:
        if self.commission_type == self.COMMISSION_PERCENTAGE:
            return (amount * self.commission_percentage / 100).quantize(Decimal("0.01"))
        return self.commission_fixed_amount


class AffiliateLink(models.Model):
    PRODUCT_ALL = "all"

    affiliate = models.ForeignKey(Affiliate, on_delete=models.CASCADE, related_name="links")
    link_code = models.CharField(max_length=32, unique=True)
    product_type = models.CharField(max_length=32, default=PRODUCT_ALL)
    is_active = models.BooleanField(default=True)
    clicks = models.PositiveIntegerField(default=0)
    conversions = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.link_code

    @property
    def conversion_rate(self):
        if not self.clicks:
            return Decimal("0")
        return (Decimal(self.conversions) / Decimal(self.clicks) * 100).quantize(Decimal("0.01"))


class AffiliateStripeProduct(models.Model):
    """The affiliate's own Stripe price for one plan and billing cycle."""

    affiliate = models.ForeignKey(Affiliate, on_delete=models.CASCADE, related_name="stripe_products")
    plan_type = models.CharField(max_length=16, choices=PLAN_CHOICES)
    billing = models.CharField(max_length=8, choices=BILLING_CHOICES)
    stripe_product_id = models.CharField(max_length=64, blank=True)
    stripe_price_id = models.CharField(max_length=64)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["affiliate", "plan_type", "billing"], name="uniq_affiliate_price"),
        ]


class AffiliateCoupon(models.Model):
    DISCOUNT_PERCENTAGE = "percentage"
    DISCOUNT_FIXED = "fixed"
    DISCOUNT_CHOICES = [(DISCOUNT_PERCENTAGE, "Percentual"), (DISCOUNT_FIXED, "Valor fixo")]

    affiliate = models.ForeignKey(Affiliate, on_delete=models.CASCADE, related_name="coupons")
    stripe_coupon_id = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    discount_type = models.CharField(max_length=16, choices=DISCOUNT_CHOICES)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    max_redemptions = models.PositiveIntegerField(null=True, blank=True)
    times_redeemed = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.stripe_coupon_id

    def usable(self, now) -> bool:
        if not self.is_active:
            return False
        if self.expires_at and self.expires_at < now:
            return False
        return not self.max_redemptions or self.times_redeemed < self.max_redemptions


class AffiliateSale(models.Model):
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pendente"),
        (STATUS_CONFIRMED, "Confirmada"),
        (STATUS_CANCELLED, "Cancelada"),
        (STATUS_REFUNDED, "Reembolsada"),
    ]

    affiliate = models.ForeignKey(Affiliate, on_delete=models.PROTECT, related_name="sales")
    link = models.ForeignKey(AffiliateLink, null=True, blank=True, on_delete=models.SET_NULL, related_name="sales")
    customer_email = models.EmailField(blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    customer_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    plan_type = models.CharField(max_length=16, choices=PLAN_CHOICES)
    sale_amount = models.DecimalField(max_digits=12, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2)
    stripe_session_id = models.CharField(max_length=255, unique=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CONFIRMED)
    sale_date = models.DateTimeField()
    confirmed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-sale_date"]
        indexes = [
            models.Index(fields=["affiliate", "sale_date"], name="aff_sale_affiliate_date_idx"),
        ]


class AffiliateCommission(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_PAID = "paid"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pendente"),
        (STATUS_APPROVED, "Aprovada"),
        (STATUS_PAID, "Paga"),
        (STATUS_CANCELLED, "Cancelada"),
    ]
    TRANSITIONS = {
        STATUS_PENDING: {STATUS_APPROVED, STATUS_CANCELLED},
        STATUS_APPROVED: {STATUS_PAID},
    }

    affiliate = models.ForeignKey(Affiliate, on_delete=models.PROTECT, related_name="commissions")
    sale = models.OneToOneField(AffiliateSale, null=True, blank=True, on_delete=models.SET_NULL, related_name="commission")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    approved_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=32, blank=True)
    payment_reference = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["affiliate", "status"], name="aff_commission_status_idx"),
        ]

    def can_transition(self, new_status: str) -> bool:
        return new_status in self.TRANSITIONS.get(self.status, set())
