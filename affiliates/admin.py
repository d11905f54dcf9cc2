from django.contrib import admin

from .models import (
    Affiliate,
    AffiliateCommission,
    AffiliateCoupon,
    AffiliateLink,
    AffiliateSale,
    AffiliateStripeProduct,
)


class AffiliateLinkInline(admin.TabularInline):
    model = AffiliateLink
    extra = 0
    readonly_fields = ("clicks", "conversions")


@admin.register(Affiliate)
class AffiliateAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "affiliate_code", "status", "commission_type", "total_sales", "total_commissions")
    list_filter = ("status", "commission_type")
    search_fields = ("name", "email", "affiliate_code")
    inlines = [AffiliateLinkInline]


@admin.register(AffiliateSale)
class AffiliateSaleAdmin(admin.ModelAdmin):
    list_display = ("stripe_session_id", "affiliate", "plan_type", "sale_amount", "commission_amount", "status", "sale_date")
    list_filter = ("status", "plan_type")
    search_fields = ("stripe_session_id", "customer_email")


@admin.register(AffiliateCommission)
class AffiliateCommissionAdmin(admin.ModelAdmin):
    list_display = ("affiliate", "amount", "status", "approved_at", "paid_at")
    list_filter = ("status",)


@admin.register(AffiliateCoupon)
class AffiliateCouponAdmin(admin.ModelAdmin):
    list_display = ("stripe_coupon_id", "affiliate", "discount_type", "discount_value", "times_redeemed", "is_active")


admin.site.register(AffiliateStripeProduct)
