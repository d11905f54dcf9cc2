"""
Initial migration for the recipes app.

Creates product types, recipes and their component lines.
"""
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def line_id():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


def receita_fk(related_name):
    return models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name=related_name, to="recipes.recipe")


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("costing", "0001_initial"),
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ProductType",
            fields=[
                ("id", line_id()),
                ("nome", models.CharField(max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tipos_produto", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["nome"],
                "constraints": [models.UniqueConstraint(fields=("user", "nome"), name="uniq_product_type_per_user")],
            },
        ),
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", line_id()),
                ("numero_sequencial", models.PositiveIntegerField()),
                ("nome", models.CharField(max_length=255)),
                ("rendimento_valor", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("rendimento_unidade", models.CharField(blank=True, max_length=16)),
                ("peso_unitario", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("tempo_preparo_total", models.PositiveIntegerField(default=0)),
                ("tempo_preparo_mao_obra", models.PositiveIntegerField(default=0)),
                ("conservacao", models.JSONField(blank=True, default=dict)),
                ("observacoes", models.TextField(blank=True)),
                ("imagem_url", models.URLField(blank=True, max_length=500)),
                ("preco_venda", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("status", models.CharField(choices=[("rascunho", "Rascunho"), ("finalizada", "Finalizada")], default="rascunho", max_length=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("markup", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="receitas", to="costing.markupblock")),
                ("tipo_produto", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="receitas", to="recipes.producttype")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="receitas", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-numero_sequencial"],
                "constraints": [models.UniqueConstraint(fields=("user", "numero_sequencial"), name="uniq_recipe_number_per_user")],
                "indexes": [models.Index(fields=["user", "status"], name="recipes_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="RecipeIngredient",
            fields=[
                ("id", line_id()),
                ("quantidade", models.DecimalField(decimal_places=4, max_digits=14)),
                ("produto", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="inventory.product")),
                ("receita", receita_fk("ingredientes")),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="RecipePackaging",
            fields=[
                ("id", line_id()),
                ("quantidade", models.DecimalField(decimal_places=4, max_digits=14)),
                ("produto", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="inventory.product")),
                ("receita", receita_fk("embalagens")),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="RecipeSubRecipe",
            fields=[
                ("id", line_id()),
                ("quantidade", models.DecimalField(decimal_places=4, max_digits=14)),
                ("unidade", models.CharField(blank=True, max_length=16)),
                ("receita", receita_fk("sub_receitas")),
                ("sub_receita", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="usada_em", to="recipes.recipe")),
            ],
            options={
                "ordering": ["id"],
                "constraints": [models.CheckConstraint(condition=~models.Q(receita=models.F("sub_receita")), name="sub_recipe_not_self")],
            },
        ),
        migrations.CreateModel(
            name="RecipeLabor",
            fields=[
                ("id", line_id()),
                ("descricao", models.CharField(blank=True, max_length=255)),
                ("tempo", models.DecimalField(decimal_places=2, max_digits=10)),
                ("unidade_tempo", models.CharField(choices=[("minutos", "Minutos"), ("horas", "Horas"), ("dias", "Dias")], default="minutos", max_length=8)),
                ("custo_por_hora", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("valor_total", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("funcionario", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="costing.employee")),
                ("receita", receita_fk("mao_obra")),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="RecipeStep",
            fields=[
                ("id", line_id()),
                ("ordem", models.PositiveIntegerField()),
                ("descricao", models.TextField()),
                ("imagem_url", models.URLField(blank=True, max_length=500)),
                ("receita", receita_fk("passos")),
            ],
            options={"ordering": ["ordem"]},
        ),
    ]
