"""
Initial migration for the billing app.

Creates Stripe subscription and invoice mirrors plus the promotional
coupon tables.
"""
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

PLAN_CHOICES = [("free", "Gratuito"), ("professional", "Profissional"), ("enterprise", "Empresarial")]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("stripe_customer_id", models.CharField(blank=True, max_length=255)),
                ("stripe_subscription_id", models.CharField(max_length=255, unique=True)),
                ("plan", models.CharField(choices=PLAN_CHOICES, default="professional", max_length=20)),
                ("status", models.CharField(choices=[("active", "Active"), ("trialing", "Trialing"), ("past_due", "Past due"), ("canceled", "Canceled"), ("incomplete", "Incomplete")], default="incomplete", max_length=20)),
                ("current_period_end", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="subscriptions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["stripe_customer_id"], name="billing_sub_customer_idx"),
                    models.Index(fields=["status"], name="billing_sub_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("stripe_invoice_id", models.CharField(max_length=255, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("currency", models.CharField(default="brl", max_length=8)),
                ("status", models.CharField(default="paid", max_length=20)),
                ("period_start", models.DateTimeField(blank=True, null=True)),
                ("period_end", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("subscription", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="invoices", to="billing.subscription")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="invoices", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="PromotionalCoupon",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True, validators=[django.core.validators.RegexValidator("^[A-Z0-9_-]{3,20}$", "Use apenas letras maiúsculas, números, _ e - (3-20 caracteres).")])),
                ("description", models.CharField(blank=True, max_length=255)),
                ("discount_type", models.CharField(choices=[("trial_period", "Período de teste"), ("percentage", "Desconto percentual"), ("fixed", "Desconto fixo")], default="trial_period", max_length=20)),
                ("discount_value", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("trial_days", models.PositiveIntegerField(blank=True, null=True)),
                ("applies_to_plans", models.JSONField(blank=True, default=list)),
                ("max_redemptions", models.PositiveIntegerField(blank=True, null=True)),
                ("times_redeemed", models.PositiveIntegerField(default=0)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="CouponRedemption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("plan_granted", models.CharField(choices=PLAN_CHOICES, max_length=20)),
                ("trial_ends_at", models.DateTimeField(blank=True, null=True)),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
                ("coupon", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="redemptions", to="billing.promotionalcoupon")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="coupon_redemptions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-applied_at"],
                "constraints": [models.UniqueConstraint(fields=("coupon", "user"), name="uniq_coupon_redemption")],
            },
        ),
    ]
