"""
Serializers for the costing app.
"""
from decimal import Decimal

from rest_framework import serializers

from common.fields import OwnedPrimaryKeyField
from .markup import categorize_charge
from .models import Employee, FixedExpense, FixedExpenseCategory, MarkupBlock, RevenueEntry, SalesCharge

MONEY = {"max_digits": 14, "decimal_places": 2, "min_value": Decimal("0")}
PERCENT = {"max_digits": 7, "decimal_places": 2, "min_value": Decimal("0"), "max_value": Decimal("100")}


class FixedExpenseCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = FixedExpenseCategory
        fields = ["id", "nome", "created_at"]
        read_only_fields = ["id", "created_at"]


class FixedExpenseSerializer(serializers.ModelSerializer):
    valor = serializers.DecimalField(**MONEY)
    categoria = OwnedPrimaryKeyField(queryset=FixedExpenseCategory.objects.all(), required=False, allow_null=True)
    categoria_nome = serializers.CharField(source="categoria.nome", read_only=True, default=None)

    class Meta:
        model = FixedExpense
        fields = ["id", "descricao", "valor", "categoria", "categoria_nome", "ativo", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]


class EmployeeSerializer(serializers.ModelSerializer):
    salario_base = serializers.DecimalField(**MONEY)
    salario_liquido = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    encargos_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    custo_mensal = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = Employee
        fields = [
            "id",
            "nome",
            "cargo",
            "tipo_mao_obra",
            "salario_base",
            "adicional",
            "desconto",
            "custo_por_hora",
            "horas_por_dia",
            "dias_por_semana",
            "semanas_por_mes",
            "horas_totais_mes",
            *Employee.CHARGE_FIELDS,
            "salario_liquido",
            "encargos_total",
            "custo_mensal",
            "ativo",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def _save_with_hours(self, instance):
        instance.fill_derived_hours()
        instance.save()
        return instance

    def create(self, validated_data):
        return self._save_with_hours(Employee(**validated_data))

    def update(self, instance, validated_data):
        for key, value in validated_data.items():
            setattr(instance, key, value)
        return self._save_with_hours(instance)


class SalesChargeSerializer(serializers.ModelSerializer):
    valor_percentual = serializers.DecimalField(required=False, **PERCENT)
    valor_fixo = serializers.DecimalField(required=False, **MONEY)
    categoria = serializers.SerializerMethodField()

    class Meta:
        model = SalesCharge
        fields = ["id", "nome", "tipo", "valor_percentual", "valor_fixo", "categoria", "ativo", "created_at"]
        read_only_fields = ["id", "created_at"]

    def get_categoria(self, obj):
        return categorize_charge(obj.nome)


class RevenueEntrySerializer(serializers.ModelSerializer):
    valor = serializers.DecimalField(**MONEY)

    class Meta:
        model = RevenueEntry
        fields = ["id", "mes", "valor", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_mes(self, value):
        return value.replace(day=1)

    def validate(self, attrs):
        owner = self.context.get("owner")
        mes = attrs.get("mes")
        if owner is not None and mes is not None:
            qs = RevenueEntry.objects.filter(user=owner, mes=mes)
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError({"mes": "Já existe faturamento para este mês."})
        return attrs


class MarkupBlockSerializer(serializers.ModelSerializer):
    margem_lucro = serializers.DecimalField(required=False, **PERCENT)

    class Meta:
        model = MarkupBlock
        fields = [
            "id",
            "nome",
            "tipo",
            "periodo",
            "despesas_selecionadas",
            "funcionarios_selecionados",
            "encargos_selecionados",
            "margem_lucro",
            "gasto_sobre_faturamento",
            "impostos",
            "taxas_meios_pagamento",
            "comissoes",
            "outros",
            "encargos_sobre_venda",
            "markup_ideal",
            "markup_aplicado",
            "valor_em_real",
            "calculado_em",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "gasto_sobre_faturamento",
            "impostos",
            "taxas_meios_pagamento",
            "comissoes",
            "outros",
            "encargos_sobre_venda",
            "markup_ideal",
            "valor_em_real",
            "calculado_em",
            "created_at",
            "updated_at",
        ]

    def _validate_ids(self, value):
        if not isinstance(value, list) or not all(isinstance(v, int) for v in value):
            raise serializers.ValidationError("Informe uma lista de IDs.")
        return value

    validate_despesas_selecionadas = _validate_ids
    validate_funcionarios_selecionados = _validate_ids
    validate_encargos_selecionados = _validate_ids


class CalculateSerializer(serializers.Serializer):
    """Ad-hoc calculation: either raw fractions or a selection of items."""

    periodo = serializers.ChoiceField(choices=MarkupBlock.PERIODO_CHOICES, default="12")
    despesas = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    funcionarios = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    encargos = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    margem_lucro = serializers.DecimalField(required=False, default=Decimal("0"), **PERCENT)


class MarkupFractionsSerializer(serializers.Serializer):
    fees = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=Decimal("0"), default=Decimal("0"))
    taxes = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=Decimal("0"), default=Decimal("0"))
    payment = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=Decimal("0"), default=Decimal("0"))
    commissions = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=Decimal("0"), default=Decimal("0"))
    others = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=Decimal("0"), default=Decimal("0"))
    profit = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=Decimal("0"), default=Decimal("0"))
    fixed_value = serializers.DecimalField(**MONEY, required=False, allow_null=True)
    average_ticket = serializers.DecimalField(**MONEY, required=False, allow_null=True)
