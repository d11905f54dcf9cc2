"""
Models for the billing app.

`Subscription` and `Invoice` mirror the Stripe objects that matter for
plan gating; both are upserted by webhook handlers keyed on their Stripe
ids.  `PromotionalCoupon` and `CouponRedemption` implement in-app coupons
that grant a trial of a paid plan without going through checkout.
"""
from __future__ import annotations

from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models

from .plans import PLAN_CHOICES, PLAN_PROFESSIONAL

COUPON_CODE_RE = r"^[A-Z0-9_-]{3,20}$"


class Subscription(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_TRIALING = "trialing"
    STATUS_PAST_DUE = "past_due"
    STATUS_CANCELED = "canceled"
    STATUS_INCOMPLETE = "incomplete"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_TRIALING, "Trialing"),
        (STATUS_PAST_DUE, "Past due"),
        (STATUS_CANCELED, "Canceled"),
        (STATUS_INCOMPLETE, "Incomplete"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
    )
    customer_email = models.EmailField(blank=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True)
    stripe_subscription_id = models.CharField(max_length=255, unique=True)
    plan = models.CharField(max_length=20, choices=PLAN_CHOICES, default=PLAN_PROFESSIONAL)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_INCOMPLETE)
    current_period_end = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["stripe_customer_id"], name="billing_sub_customer_idx"),
            models.Index(fields=["status"], name="billing_sub_status_idx"),
        ]

    def __str__(self):
        return f"Subscription<{self.stripe_subscription_id} {self.plan} {self.status}>"


class Invoice(models.Model):
    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )
    stripe_invoice_id = models.CharField(max_length=255, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=8, default="brl")
    status = models.CharField(max_length=20, default="paid")
    period_start = models.DateTimeField(null=True, blank=True)
    period_end = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Invoice<{self.stripe_invoice_id} {self.amount} {self.currency}>"


class PromotionalCoupon(models.Model):
    TYPE_TRIAL = "trial_period"
    TYPE_PERCENTAGE = "percentage"
    TYPE_FIXED = "fixed"
    TYPE_CHOICES = [
        (TYPE_TRIAL, "Período de teste"),
        (TYPE_PERCENTAGE, "Desconto percentual"),
        (TYPE_FIXED, "Desconto fixo"),
    ]

    code = models.CharField(
        max_length=20,
        unique=True,
        validators=[RegexValidator(COUPON_CODE_RE, "Use apenas letras maiúsculas, números, _ e - (3-20 caracteres).")],
    )
    description = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_TRIAL)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    trial_days = models.PositiveIntegerField(null=True, blank=True)
    applies_to_plans = models.JSONField(default=list, blank=True)
    max_redemptions = models.PositiveIntegerField(null=True, blank=True)
    times_redeemed = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.code


class CouponRedemption(models.Model):
    coupon = models.ForeignKey(PromotionalCoupon, on_delete=models.CASCADE, related_name="redemptions")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="coupon_redemptions")
    plan_granted = models.CharField(max_length=20, choices=PLAN_CHOICES)
    trial_ends_at = models.DateTimeField(null=True, blank=True)
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-applied_at"]
        constraints = [
            models.UniqueConstraint(fields=["coupon", "user"], name="uniq_coupon_redemption"),
        ]

    def __str__(self):
        return f"{self.coupon_id}:{self.user_id}"
