"""
Initial migration for the users app.

Defines the `UserProfile` and `UserRole` models.  Profiles are created
for new users through signals.
"""
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion
from django.conf import settings


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(blank=True, max_length=255)),
                ("nome_fantasia", models.CharField(blank=True, max_length=255)),
                ("cnpj_cpf", models.CharField(blank=True, max_length=32)),
                ("telefone", models.CharField(blank=True, max_length=32)),
                ("horas_trabalhadas_mes", models.DecimalField(decimal_places=2, default=Decimal("173.20"), max_digits=6)),
                ("plan", models.CharField(choices=[("free", "Gratuito"), ("professional", "Profissional"), ("enterprise", "Empresarial")], default="free", max_length=20)),
                ("plan_expires_at", models.DateTimeField(blank=True, null=True)),
                ("stripe_customer_id", models.CharField(blank=True, default="", max_length=255)),
                ("subscription_status", models.CharField(blank=True, default="", max_length=32)),
                ("pdf_exports_count", models.PositiveIntegerField(default=0)),
                ("pdf_exports_reset_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["plan"], name="users_profile_plan_idx"),
                    models.Index(fields=["stripe_customer_id"], name="users_profile_stripe_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("admin", "Admin"), ("moderator", "Moderator"), ("user", "User")], max_length=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="roles", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["user_id", "role"],
                "constraints": [models.UniqueConstraint(fields=("user", "role"), name="uniq_user_role")],
            },
        ),
    ]
