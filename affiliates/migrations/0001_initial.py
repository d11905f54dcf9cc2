"""
Initial migration for the affiliates app.

Creates affiliates, their tracked links, Stripe prices and coupons, and
the sale and commission ledgers.
"""
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

PLAN_CHOICES = [("free", "Gratuito"), ("professional", "Profissional"), ("enterprise", "Empresarial")]
BILLING_CHOICES = [("monthly", "Mensal"), ("yearly", "Anual")]


def pk():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Affiliate",
            fields=[
                ("id", pk()),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("document", models.CharField(blank=True, max_length=32)),
                ("status", models.CharField(choices=[("active", "Ativo"), ("inactive", "Inativo"), ("suspended", "Suspenso")], default="active", max_length=16)),
                ("affiliate_code", models.CharField(max_length=32, unique=True)),
                ("commission_type", models.CharField(choices=[("percentage", "Percentual"), ("fixed", "Valor fixo")], default="percentage", max_length=16)),
                ("commission_percentage", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=5)),
                ("commission_fixed_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("pix_key", models.CharField(blank=True, max_length=255)),
                ("bank_details", models.JSONField(blank=True, default=dict)),
                ("total_sales", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("total_commissions", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="AffiliateLink",
            fields=[
                ("id", pk()),
                ("link_code", models.CharField(max_length=32, unique=True)),
                ("product_type", models.CharField(default="all", max_length=32)),
                ("is_active", models.BooleanField(default=True)),
                ("clicks", models.PositiveIntegerField(default=0)),
                ("conversions", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("affiliate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="links", to="affiliates.affiliate")),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="AffiliateStripeProduct",
            fields=[
                ("id", pk()),
                ("plan_type", models.CharField(choices=PLAN_CHOICES, max_length=16)),
                ("billing", models.CharField(choices=BILLING_CHOICES, max_length=8)),
                ("stripe_product_id", models.CharField(blank=True, max_length=64)),
                ("stripe_price_id", models.CharField(max_length=64)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("affiliate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="stripe_products", to="affiliates.affiliate")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("affiliate", "plan_type", "billing"), name="uniq_affiliate_price")],
            },
        ),
        migrations.CreateModel(
            name="AffiliateCoupon",
            fields=[
                ("id", pk()),
                ("stripe_coupon_id", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("discount_type", models.CharField(choices=[("percentage", "Percentual"), ("fixed", "Valor fixo")], max_length=16)),
                ("discount_value", models.DecimalField(decimal_places=2, max_digits=12)),
                ("max_redemptions", models.PositiveIntegerField(blank=True, null=True)),
                ("times_redeemed", models.PositiveIntegerField(default=0)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("affiliate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="coupons", to="affiliates.affiliate")),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="AffiliateSale",
            fields=[
                ("id", pk()),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("customer_name", models.CharField(blank=True, max_length=255)),
                ("plan_type", models.CharField(choices=PLAN_CHOICES, max_length=16)),
                ("sale_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("commission_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("stripe_session_id", models.CharField(max_length=255, unique=True)),
                ("stripe_payment_intent_id", models.CharField(blank=True, max_length=255)),
                ("status", models.CharField(choices=[("pending", "Pendente"), ("confirmed", "Confirmada"), ("cancelled", "Cancelada"), ("refunded", "Reembolsada")], default="confirmed", max_length=16)),
                ("sale_date", models.DateTimeField()),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("affiliate", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sales", to="affiliates.affiliate")),
                ("customer_user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("link", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sales", to="affiliates.affiliatelink")),
            ],
            options={
                "ordering": ["-sale_date"],
                "indexes": [models.Index(fields=["affiliate", "sale_date"], name="aff_sale_affiliate_date_idx")],
            },
        ),
        migrations.CreateModel(
            name="AffiliateCommission",
            fields=[
                ("id", pk()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("status", models.CharField(choices=[("pending", "Pendente"), ("approved", "Aprovada"), ("paid", "Paga"), ("cancelled", "Cancelada")], default="pending", max_length=16)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("payment_method", models.CharField(blank=True, max_length=32)),
                ("payment_reference", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("affiliate", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="commissions", to="affiliates.affiliate")),
                ("sale", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="commission", to="affiliates.affiliatesale")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["affiliate", "status"], name="aff_commission_status_idx")],
            },
        ),
    ]
