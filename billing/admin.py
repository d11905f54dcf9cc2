"""
Admin registrations for the billing app.
"""
from django.contrib import admin

from .models import CouponRedemption, Invoice, PromotionalCoupon, Subscription


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("stripe_subscription_id", "user", "plan", "status", "current_period_end")
    list_filter = ("plan", "status")
    search_fields = ("stripe_subscription_id", "stripe_customer_id", "customer_email", "user__email")
    ordering = ("-created_at",)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("stripe_invoice_id", "user", "amount", "currency", "status", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("stripe_invoice_id", "user__email")


@admin.register(PromotionalCoupon)
class PromotionalCouponAdmin(admin.ModelAdmin):
    list_display = ("code", "discount_type", "trial_days", "times_redeemed", "max_redemptions", "is_active", "expires_at")
    list_filter = ("discount_type", "is_active")
    search_fields = ("code", "description")


@admin.register(CouponRedemption)
class CouponRedemptionAdmin(admin.ModelAdmin):
    list_display = ("coupon", "user", "plan_granted", "trial_ends_at", "applied_at")
    search_fields = ("coupon__code", "user__email")
