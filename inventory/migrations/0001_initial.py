"""
Initial migration for the inventory app.

Creates per-account categories, brands, suppliers, products and the
stock movement ledger with its receipts.
"""
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

UNIT_CHOICES = [
    ("cm", "Centímetro"), ("cx", "Caixa"), ("fd", "Fardo"), ("g", "Grama"), ("k", "Quilograma"),
    ("l", "Litro"), ("m", "Metro"), ("ml", "Mililitro"), ("pct", "Pacote"), ("un", "Unidade"),
]
TIPO_CHOICES = [("entrada", "Entrada"), ("saida", "Saída")]


def nutrition_field():
    return models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="categorias", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["nome"],
                "constraints": [models.UniqueConstraint(fields=("user", "nome"), name="uniq_category_per_user")],
            },
        ),
        migrations.CreateModel(
            name="Brand",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="marcas", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["nome"],
                "constraints": [models.UniqueConstraint(fields=("user", "nome"), name="uniq_brand_per_user")],
            },
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=255)),
                ("cnpj_cpf", models.CharField(blank=True, max_length=32)),
                ("contato", models.CharField(blank=True, max_length=255)),
                ("telefone", models.CharField(blank=True, max_length=32)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("observacoes", models.TextField(blank=True)),
                ("ativo", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fornecedores", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["nome"],
                "constraints": [models.UniqueConstraint(fields=("user", "nome"), name="uniq_supplier_per_user")],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=255)),
                ("codigo_interno", models.PositiveIntegerField()),
                ("codigos_barras", models.JSONField(blank=True, default=list)),
                ("sku", models.CharField(blank=True, max_length=64)),
                ("unidade_compra", models.CharField(choices=UNIT_CHOICES, default="un", max_length=8)),
                ("unidade_uso", models.CharField(blank=True, choices=UNIT_CHOICES, max_length=8)),
                ("fator_conversao", models.DecimalField(blank=True, decimal_places=4, max_digits=14, null=True)),
                ("custo_unitario", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("estoque_atual", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=14)),
                ("estoque_minimo", models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True)),
                ("ativo", models.BooleanField(default=True)),
                ("imagem_url", models.URLField(blank=True, max_length=500)),
                ("rotulo_porcao", models.CharField(blank=True, max_length=64)),
                ("rotulo_kcal", nutrition_field()),
                ("rotulo_carb", nutrition_field()),
                ("rotulo_prot", nutrition_field()),
                ("rotulo_gord_total", nutrition_field()),
                ("rotulo_gord_sat", nutrition_field()),
                ("rotulo_gord_trans", nutrition_field()),
                ("rotulo_fibra", nutrition_field()),
                ("rotulo_sodio", nutrition_field()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="produtos", to=settings.AUTH_USER_MODEL)),
                ("marcas", models.ManyToManyField(blank=True, related_name="produtos", to="inventory.brand")),
                ("categorias", models.ManyToManyField(blank=True, related_name="produtos", to="inventory.category")),
                ("fornecedores", models.ManyToManyField(blank=True, related_name="produtos", to="inventory.supplier")),
            ],
            options={
                "ordering": ["codigo_interno"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "codigo_interno"), name="uniq_product_code_per_user"),
                    models.CheckConstraint(condition=models.Q(estoque_atual__gte=0), name="product_stock_non_negative"),
                ],
                "indexes": [
                    models.Index(fields=["user", "ativo"], name="inv_product_user_active_idx"),
                    models.Index(fields=["user", "nome"], name="inv_product_user_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MovementReceipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("numero", models.PositiveIntegerField()),
                ("tipo", models.CharField(choices=TIPO_CHOICES, max_length=10)),
                ("responsavel", models.CharField(max_length=255)),
                ("origem", models.CharField(blank=True, max_length=255)),
                ("observacao", models.TextField(blank=True)),
                ("valor_total", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("data_hora", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comprovantes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-data_hora", "-numero"],
                "constraints": [models.UniqueConstraint(fields=("user", "numero"), name="uniq_receipt_number_per_user")],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tipo", models.CharField(choices=TIPO_CHOICES, max_length=10)),
                ("motivo", models.CharField(max_length=64)),
                ("quantidade", models.DecimalField(decimal_places=3, max_digits=14)),
                ("custo_aplicado", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("responsavel", models.CharField(max_length=255)),
                ("origem", models.CharField(blank=True, max_length=255)),
                ("observacao", models.TextField(blank=True)),
                ("data_hora", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("comprovante", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="movimentacoes", to="inventory.movementreceipt")),
                ("produto", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="movimentacoes", to="inventory.product")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="movimentacoes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-data_hora", "-id"],
                "indexes": [
                    models.Index(fields=["user", "data_hora"], name="inv_movement_user_date_idx"),
                    models.Index(fields=["user", "tipo"], name="inv_movement_user_type_idx"),
                ],
            },
        ),
    ]
