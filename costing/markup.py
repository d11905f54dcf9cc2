"""
Markup arithmetic.

Pure functions with no database access: they take plain numbers (or
objects exposing the needed attributes) and return Decimals.  Percentages
are expressed as numbers between 0 and 100 unless a function says it
takes fractions.
"""
from __future__ import annotations

from collections import namedtuple
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_MONTHLY_HOURS = Decimal("173.2")
DEFAULT_TOTAL_PERCENT = Decimal("20")
FALLBACK_MARKUP = Decimal("1.25")

CATEGORY_TAXES = "impostos"
CATEGORY_PAYMENT = "meios_pagamento"
CATEGORY_COMMISSIONS = "comissoes"
CATEGORY_OTHER = "outros"

CHARGE_CATEGORIES = {
    CATEGORY_TAXES: {"ICMS", "ISS", "PIS/COFINS", "IRPJ/CSLL", "IPI"},
    CATEGORY_PAYMENT: {"Cartão de débito", "Cartão de crédito", "Boleto bancário", "PIX", "Gateway de pagamento"},
    CATEGORY_COMMISSIONS: {"Marketing", "Aplicativo de delivery", "Plataforma SaaS", "Colaboradores (comissão)"},
}

MarkupResult = namedtuple("MarkupResult", ["total_percent", "multiplier", "effective_multiplier"])


def _d(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round2(value) -> Decimal:
    return _d(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def calc_markup(fees=0, taxes=0, payment=0, commissions=0, others=0, profit=0,
                fixed_value=None, average_ticket=None) -> MarkupResult:
    """Markup multiplier from cost fractions (0.1 == 10%).

    multiplier = 1 / (1 - sum).  When both a fixed per-sale value and the
    average ticket are positive, the fixed value is spread over the ticket
    and added to the multiplier.
    """
    total = sum((_d(v) for v in (fees, taxes, payment, commissions, others, profit)), Decimal("0"))
    if total >= 1:
        raise ValueError("A soma dos percentuais deve ser menor que 100%.")
    if total < 0:
        raise ValueError("Percentuais não podem ser negativos.")
    multiplier = Decimal("1") / (Decimal("1") - total)
    effective = multiplier
    fixed, ticket = _d(fixed_value), _d(average_ticket)
    if fixed > 0 and ticket > 0:
        effective = multiplier + fixed / ticket
    return MarkupResult(total, multiplier, effective)


def ideal_markup(total_percent) -> Decimal:
    """Markup for a total percentage (0-100) of charges plus desired profit.

    Zero falls back to 20%; anything that does not yield a multiplier
    above 1 falls back to 1.25.
    """
    total = _d(total_percent)
    if total == 0:
        total = DEFAULT_TOTAL_PERCENT
    if total >= 100:
        return FALLBACK_MARKUP
    markup = Decimal("100") / (Decimal("100") - total)
    if not markup.is_finite() or markup <= 1:
        return FALLBACK_MARKUP
    return markup


def categorize_charge(nome: str) -> str:
    for category, names in CHARGE_CATEGORIES.items():
        if nome in names:
            return category
    return CATEGORY_OTHER


def _months_back(today: date, months: int) -> date:
    year, month = today.year, today.month - months
    while month <= 0:
        month += 12
        year -= 1
    day = min(today.day, 28)
    return date(year, month, day)


def average_revenue(entries, months=None, today=None) -> Decimal:
    """Average monthly revenue.

    `entries` are objects with `mes` (date) and `valor`.  With `months`
    set only entries from the last N months count; None or "todos" uses
    every entry.
    """
    entries = list(entries)
    if months not in (None, "", "todos"):
        limit = _months_back(today or date.today(), int(months))
        entries = [e for e in entries if e.mes >= limit]
    if not entries:
        return Decimal("0")
    return sum((_d(e.valor) for e in entries), Decimal("0")) / len(entries)


def employee_monthly_cost(employee, default_hours=DEFAULT_MONTHLY_HOURS) -> Decimal:
    """Hourly cost times monthly hours when known, else the base salary."""
    hourly = _d(getattr(employee, "custo_por_hora", None))
    if hourly > 0:
        hours = _d(getattr(employee, "horas_totais_mes", None)) or _d(default_hours)
        return hourly * hours
    return _d(employee.salario_base)


def spending_over_revenue(spending, average) -> Decimal:
    spending, average = _d(spending), _d(average)
    if spending <= 0 or average <= 0:
        return Decimal("0.00")
    return round2(spending / average * 100)


def block_breakdown(fixed_expenses, employees, charges, revenue_average, profit_percent,
                    default_hours=DEFAULT_MONTHLY_HOURS) -> dict:
    """All figures shown on a markup block, from its selected items."""
    spending = sum((_d(e.valor) for e in fixed_expenses), Decimal("0"))
    spending += sum((employee_monthly_cost(e, default_hours) for e in employees), Decimal("0"))

    percents = {CATEGORY_TAXES: Decimal("0"), CATEGORY_PAYMENT: Decimal("0"),
                CATEGORY_COMMISSIONS: Decimal("0"), CATEGORY_OTHER: Decimal("0")}
    fixed_per_sale = Decimal("0")
    for charge in charges:
        percents[categorize_charge(charge.nome)] += _d(charge.valor_percentual)
        fixed_per_sale += _d(charge.valor_fixo)

    over_revenue = spending_over_revenue(spending, revenue_average)
    charges_total = sum(percents.values(), Decimal("0"))
    total_percent = over_revenue + charges_total + _d(profit_percent)
    return {
        "gasto_sobre_faturamento": over_revenue,
        "impostos": percents[CATEGORY_TAXES],
        "taxas_meios_pagamento": percents[CATEGORY_PAYMENT],
        "comissoes": percents[CATEGORY_COMMISSIONS],
        "outros": percents[CATEGORY_OTHER],
        "encargos_sobre_venda": charges_total,
        "valor_em_real": round2(fixed_per_sale),
        "total_percentual": total_percent,
        "markup_ideal": ideal_markup(total_percent).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
    }
