"""
Initial migration for the costing app.

Creates expense categories, fixed expenses, payroll, sales charges,
monthly revenue and markup blocks.
"""
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def percent_field():
    return models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=7)


def user_fk(related_name):
    return models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE, related_name=related_name, to=settings.AUTH_USER_MODEL
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="FixedExpenseCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", user_fk("categorias_despesa")),
            ],
            options={
                "ordering": ["nome"],
                "constraints": [models.UniqueConstraint(fields=("user", "nome"), name="uniq_expense_category_per_user")],
            },
        ),
        migrations.CreateModel(
            name="FixedExpense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("descricao", models.CharField(max_length=255)),
                ("valor", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("ativo", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("categoria", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="despesas", to="costing.fixedexpensecategory")),
                ("user", user_fk("despesas_fixas")),
            ],
            options={"ordering": ["descricao"]},
        ),
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=255)),
                ("cargo", models.CharField(blank=True, max_length=120)),
                ("tipo_mao_obra", models.CharField(choices=[("direta", "Mão de obra direta"), ("indireta", "Mão de obra indireta")], default="direta", max_length=16)),
                ("salario_base", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("adicional", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("desconto", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("custo_por_hora", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("horas_por_dia", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("dias_por_semana", models.DecimalField(blank=True, decimal_places=2, max_digits=4, null=True)),
                ("semanas_por_mes", models.DecimalField(blank=True, decimal_places=2, max_digits=4, null=True)),
                ("horas_totais_mes", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("ferias_percent", percent_field()),
                ("fgts_percent", percent_field()),
                ("inss_percent", percent_field()),
                ("rat_percent", percent_field()),
                ("plano_saude_percent", percent_field()),
                ("vale_alimentacao_percent", percent_field()),
                ("vale_refeicao_percent", percent_field()),
                ("vale_transporte_percent", percent_field()),
                ("outros_percent", percent_field()),
                ("ativo", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", user_fk("folha_pagamento")),
            ],
            options={"ordering": ["nome"]},
        ),
        migrations.CreateModel(
            name="SalesCharge",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=120)),
                ("tipo", models.CharField(blank=True, max_length=32)),
                ("valor_percentual", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=7)),
                ("valor_fixo", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("ativo", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", user_fk("encargos_venda")),
            ],
            options={"ordering": ["nome"]},
        ),
        migrations.CreateModel(
            name="RevenueEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("mes", models.DateField(help_text="Primeiro dia do mês de referência.")),
                ("valor", models.DecimalField(decimal_places=2, max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", user_fk("faturamentos")),
            ],
            options={
                "ordering": ["-mes"],
                "constraints": [models.UniqueConstraint(fields=("user", "mes"), name="uniq_revenue_month_per_user")],
            },
        ),
        migrations.CreateModel(
            name="MarkupBlock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nome", models.CharField(max_length=120)),
                ("tipo", models.CharField(blank=True, choices=[("normal", "Normal"), ("sub_receita", "Sub-receita")], max_length=16)),
                ("periodo", models.CharField(choices=[("1", "1 mês"), ("3", "3 meses"), ("6", "6 meses"), ("12", "12 meses"), ("todos", "Todos")], default="12", max_length=8)),
                ("despesas_selecionadas", models.JSONField(blank=True, default=list)),
                ("funcionarios_selecionados", models.JSONField(blank=True, default=list)),
                ("encargos_selecionados", models.JSONField(blank=True, default=list)),
                ("margem_lucro", percent_field()),
                ("gasto_sobre_faturamento", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=9)),
                ("impostos", percent_field()),
                ("taxas_meios_pagamento", percent_field()),
                ("comissoes", percent_field()),
                ("outros", percent_field()),
                ("encargos_sobre_venda", percent_field()),
                ("markup_ideal", models.DecimalField(decimal_places=4, default=Decimal("1"), max_digits=10)),
                ("markup_aplicado", models.DecimalField(decimal_places=4, default=Decimal("1"), max_digits=10)),
                ("valor_em_real", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("calculado_em", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", user_fk("markups")),
            ],
            options={
                "ordering": ["nome"],
                "indexes": [models.Index(fields=["user", "tipo"], name="costing_markup_tipo_idx")],
            },
        ),
    ]
