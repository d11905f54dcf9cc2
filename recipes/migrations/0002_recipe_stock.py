"""
Finished-recipe stock (vitrine) and its movement history.
"""
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("recipes", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RecipeStock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantidade_atual", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=14)),
                ("quantidade_minima", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=14)),
                ("unidade", models.CharField(default="unidades", max_length=32)),
                ("custo_unitario_medio", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("ativo", models.BooleanField(default=True)),
                ("data_ultima_movimentacao", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("receita", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="estoques", to="recipes.recipe")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="estoque_receitas", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["receita__nome"],
                "constraints": [models.UniqueConstraint(fields=("user", "receita"), name="uniq_recipe_stock_per_user")],
            },
        ),
        migrations.CreateModel(
            name="RecipeStockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tipo", models.CharField(choices=[("entrada", "Entrada"), ("venda", "Venda"), ("perdas", "Perdas"), ("brindes", "Brindes")], max_length=16)),
                ("quantidade", models.DecimalField(decimal_places=3, max_digits=14)),
                ("custo_unitario", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("preco_venda", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("observacao", models.TextField(blank=True)),
                ("data", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("receita", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="movimentacoes_estoque", to="recipes.recipe")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="movimentacoes_receitas", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-data", "-created_at"],
                "indexes": [models.Index(fields=["user", "data"], name="recipes_stock_mov_date_idx")],
            },
        ),
    ]
