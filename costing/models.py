"""
Models for the costing app.

The inputs a business uses to price its products: fixed monthly
expenses, payroll, per-sale charges (taxes, card fees, commissions) and
monthly revenue.  A `MarkupBlock` selects a subset of them and stores the
markup computed from that selection.
"""
from decimal import Decimal

from django.conf import settings
from django.db import models

from .markup import DEFAULT_MONTHLY_HOURS, employee_monthly_cost


class FixedExpenseCategory(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="categorias_despesa")
    nome = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["user", "nome"], name="uniq_expense_category_per_user"),
        ]

    def __str__(self):
        return self.nome


class FixedExpense(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="despesas_fixas")
    descricao = models.CharField(max_length=255)
    valor = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    categoria = models.ForeignKey(
        FixedExpenseCategory, null=True, blank=True, on_delete=models.SET_NULL, related_name="despesas"
    )
    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["descricao"]

    def __str__(self):
        return f"{self.descricao} ({self.valor})"


def percent_field():
    return models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))


class Employee(models.Model):
    """A payroll line (folha de pagamento)."""

    TIPO_DIRETA = "direta"
    TIPO_INDIRETA = "indireta"
    TIPO_CHOICES = [(TIPO_DIRETA, "Mão de obra direta"), (TIPO_INDIRETA, "Mão de obra indireta")]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="folha_pagamento")
    nome = models.CharField(max_length=255)
    cargo = models.CharField(max_length=120, blank=True)
    tipo_mao_obra = models.CharField(max_length=16, choices=TIPO_CHOICES, default=TIPO_DIRETA)
    salario_base = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    adicional = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    desconto = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    custo_por_hora = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))

    horas_por_dia = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    dias_por_semana = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    semanas_por_mes = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    horas_totais_mes = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    # Employer charges, as percentages of the base salary.
    ferias_percent = percent_field()
    fgts_percent = percent_field()
    inss_percent = percent_field()
    rat_percent = percent_field()
    plano_saude_percent = percent_field()
    vale_alimentacao_percent = percent_field()
    vale_refeicao_percent = percent_field()
    vale_transporte_percent = percent_field()
    outros_percent = percent_field()

    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    CHARGE_FIELDS = (
        "ferias_percent", "fgts_percent", "inss_percent", "rat_percent", "plano_saude_percent",
        "vale_alimentacao_percent", "vale_refeicao_percent", "vale_transporte_percent", "outros_percent",
    )

    class Meta:
        ordering = ["nome"]

    def __str__(self):
        return self.nome

    @property
    def salario_liquido(self):
        return self.salario_base + self.adicional - self.desconto

    @property
    def encargos_total(self):
        percent = sum((getattr(self, f) or Decimal("0") for f in self.CHARGE_FIELDS), Decimal("0"))
        return (self.salario_base * percent / 100).quantize(Decimal("0.01"))

    @property
    def custo_mensal(self):
        return employee_monthly_cost(self, DEFAULT_MONTHLY_HOURS)

    def fill_derived_hours(self):
        """Derive monthly hours from the weekly schedule when not given."""
        if self.horas_totais_mes is None and self.horas_por_dia and self.dias_por_semana and self.semanas_por_mes:
            self.horas_totais_mes = (self.horas_por_dia * self.dias_por_semana * self.semanas_por_mes).quantize(
                Decimal("0.01")
            )


class SalesCharge(models.Model):
    """A charge levied on each sale (encargo sobre venda)."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="encargos_venda")
    nome = models.CharField(max_length=120)
    tipo = models.CharField(max_length=32, blank=True)
    valor_percentual = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    valor_fixo = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]

    def __str__(self):
        return self.nome


class RevenueEntry(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="faturamentos")
    mes = models.DateField(help_text="Primeiro dia do mês de referência.")
    valor = models.DecimalField(max_digits=14, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-mes"]
        constraints = [
            models.UniqueConstraint(fields=["user", "mes"], name="uniq_revenue_month_per_user"),
        ]

    def __str__(self):
        return f"{self.mes:%m/%Y}: {self.valor}"


class MarkupBlock(models.Model):
    TIPO_NORMAL = "normal"
    TIPO_SUB_RECEITA = "sub_receita"
    TIPO_CHOICES = [(TIPO_NORMAL, "Normal"), (TIPO_SUB_RECEITA, "Sub-receita")]

    PERIODO_TODOS = "todos"
    PERIODO_CHOICES = [("1", "1 mês"), ("3", "3 meses"), ("6", "6 meses"), ("12", "12 meses"), (PERIODO_TODOS, "Todos")]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="markups")
    nome = models.CharField(max_length=120)
    tipo = models.CharField(max_length=16, choices=TIPO_CHOICES, blank=True)
    periodo = models.CharField(max_length=8, choices=PERIODO_CHOICES, default="12")

    despesas_selecionadas = models.JSONField(default=list, blank=True)
    funcionarios_selecionados = models.JSONField(default=list, blank=True)
    encargos_selecionados = models.JSONField(default=list, blank=True)

    margem_lucro = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    gasto_sobre_faturamento = models.DecimalField(max_digits=9, decimal_places=2, default=Decimal("0"))
    impostos = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    taxas_meios_pagamento = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    comissoes = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    outros = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    encargos_sobre_venda = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    markup_ideal = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal("1"))
    markup_aplicado = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal("1"))
    valor_em_real = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    calculado_em = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["nome"]
        indexes = [
            models.Index(fields=["user", "tipo"], name="costing_markup_tipo_idx"),
        ]

    def __str__(self):
        return f"{self.nome} ({self.markup_aplicado})"

    def save(self, *args, **kwargs):
        if not self.tipo:
            self.tipo = self.TIPO_SUB_RECEITA if "sub" in self.nome.lower() else self.TIPO_NORMAL
        super().save(*args, **kwargs)
