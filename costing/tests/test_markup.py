"""
Tests for the markup arithmetic.
"""
from collections import namedtuple
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from costing.markup import (
    average_revenue,
    block_breakdown,
    calc_markup,
    categorize_charge,
    employee_monthly_cost,
    ideal_markup,
    spending_over_revenue,
)

Entry = namedtuple("Entry", ["mes", "valor"])


def test_calc_markup_multiplier():
    result = calc_markup(taxes=Decimal("0.1"), profit=Decimal("0.2"))
    assert result.total_percent == Decimal("0.3")
    assert round(result.multiplier, 4) == Decimal("1.4286")
    assert result.effective_multiplier == result.multiplier


def test_calc_markup_adds_fixed_value_over_ticket():
    result = calc_markup(fees=Decimal("0.5"), fixed_value=Decimal("5"), average_ticket=Decimal("50"))
    assert result.multiplier == Decimal("2")
    assert result.effective_multiplier == Decimal("2.1")


def test_calc_markup_rejects_total_of_one_or_more():
    with pytest.raises(ValueError):
        calc_markup(taxes=Decimal("0.6"), profit=Decimal("0.4"))


@pytest.mark.parametrize(
    "total,expected",
    [(0, Decimal("1.25")), (50, Decimal("2")), (100, Decimal("1.25")), (-10, Decimal("1.25"))],
)
def test_ideal_markup_fallbacks(total, expected):
    assert ideal_markup(total) == expected


def test_categorize_charge():
    assert categorize_charge("ICMS") == "impostos"
    assert categorize_charge("PIX") == "meios_pagamento"
    assert categorize_charge("Marketing") == "comissoes"
    assert categorize_charge("Frete") == "outros"


def test_average_revenue_respects_period():
    entries = [
        Entry(date(2026, 5, 1), Decimal("1000")),
        Entry(date(2026, 4, 1), Decimal("2000")),
        Entry(date(2026, 1, 1), Decimal("9000")),
    ]
    assert average_revenue(entries, months="3", today=date(2026, 6, 15)) == Decimal("1500")
    assert average_revenue(entries, months="todos") == Decimal("4000")
    assert average_revenue([], months="12") == Decimal("0")


def test_employee_monthly_cost_prefers_hourly_cost():
    hourly = SimpleNamespace(custo_por_hora=Decimal("20"), horas_totais_mes=None, salario_base=Decimal("9999"))
    assert employee_monthly_cost(hourly) == Decimal("3464.0")
    salaried = SimpleNamespace(custo_por_hora=Decimal("0"), horas_totais_mes=None, salario_base=Decimal("2500"))
    assert employee_monthly_cost(salaried) == Decimal("2500")


def test_spending_over_revenue():
    assert spending_over_revenue(Decimal("2000"), Decimal("10000")) == Decimal("20.00")
    assert spending_over_revenue(Decimal("2000"), Decimal("0")) == Decimal("0.00")


def test_block_breakdown_sums_every_percentage():
    expenses = [SimpleNamespace(valor=Decimal("2000"))]
    employees = [SimpleNamespace(custo_por_hora=Decimal("0"), horas_totais_mes=None, salario_base=Decimal("3000"))]
    charges = [
        SimpleNamespace(nome="ICMS", valor_percentual=Decimal("10"), valor_fixo=Decimal("0")),
        SimpleNamespace(nome="PIX", valor_percentual=Decimal("2"), valor_fixo=Decimal("0.50")),
    ]
    result = block_breakdown(expenses, employees, charges, Decimal("10000"), Decimal("10"))
    assert result["gasto_sobre_faturamento"] == Decimal("50.00")
    assert result["impostos"] == Decimal("10")
    assert result["taxas_meios_pagamento"] == Decimal("2")
    assert result["encargos_sobre_venda"] == Decimal("12")
    assert result["valor_em_real"] == Decimal("0.50")
    assert result["total_percentual"] == Decimal("72.00")
    assert result["markup_ideal"] == Decimal("3.5714")
