"""
Markup block recalculation.

Loads the items a block selected, applies the arithmetic in `markup.py`
and stores the result on the block.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from .markup import average_revenue, block_breakdown
from .models import Employee, FixedExpense, MarkupBlock, RevenueEntry, SalesCharge

logger = logging.getLogger(__name__)


def _selected(model, user, ids):
    if not ids:
        return model.objects.none()
    return model.objects.filter(user=user, ativo=True, id__in=ids)


def _default_hours(user):
    profile = getattr(user, "profile", None)
    return getattr(profile, "horas_trabalhadas_mes", None) or None


def compute_block(user, periodo, despesas, funcionarios, encargos, margem_lucro):
    revenue = average_revenue(
        RevenueEntry.objects.filter(user=user),
        months=None if periodo == MarkupBlock.PERIODO_TODOS else periodo,
        today=timezone.localdate(),
    )
    kwargs = {}
    hours = _default_hours(user)
    if hours:
        kwargs["default_hours"] = hours
    result = block_breakdown(
        _selected(FixedExpense, user, despesas),
        _selected(Employee, user, funcionarios),
        _selected(SalesCharge, user, encargos),
        revenue,
        margem_lucro,
        **kwargs,
    )
    result["faturamento_medio"] = revenue.quantize(Decimal("0.01"))
    return result


@transaction.atomic
def recalculate_block(block: MarkupBlock) -> MarkupBlock:
    result = compute_block(
        block.user,
        block.periodo,
        block.despesas_selecionadas,
        block.funcionarios_selecionados,
        block.encargos_selecionados,
        block.margem_lucro,
    )
    for field in (
        "gasto_sobre_faturamento",
        "impostos",
        "taxas_meios_pagamento",
        "comissoes",
        "outros",
        "encargos_sobre_venda",
        "valor_em_real",
        "markup_ideal",
    ):
        setattr(block, field, result[field])
    block.markup_aplicado = result["markup_ideal"]
    block.calculado_em = timezone.now()
    block.save()
    logger.info("Recalculated markup block %s for user %s: %s", block.pk, block.user_id, block.markup_aplicado)
    return block
