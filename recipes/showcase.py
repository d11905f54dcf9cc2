"""
Finished-recipe stock (vitrine).

Produced units of a finalized recipe enter the showcase at a unit cost and
leave as sales, losses or giveaways.  Each operation locks the stock row,
checks the balance and writes the movement and the new balance together.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Case, DecimalField, F, Q, Sum, Value, When
from django.utils import timezone

from common.exceptions import BusinessRuleError
from .costing import recipe_cost
from .models import Recipe, RecipeStock, RecipeStockMovement

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
UNIT_COST = Decimal("0.0001")
MONEY = Decimal("0.01")


def weighted_average_cost(quantidade_atual, custo_medio, quantidade, custo) -> Decimal:
    """Average unit cost after adding `quantidade` units at `custo` to the current balance."""
    if quantidade_atual <= 0:
        return custo.quantize(UNIT_COST)
    total = quantidade_atual * custo_medio + quantidade * custo
    return (total / (quantidade_atual + quantidade)).quantize(UNIT_COST)


@transaction.atomic
def register_recipe_entry(user, receita: Recipe, quantidade, custo_unitario=None, quantidade_minima=None,
                          unidade=None, observacao="", data=None) -> RecipeStockMovement:
    if receita.status != Recipe.STATUS_FINALIZADA:
        raise BusinessRuleError("Apenas receitas finalizadas podem entrar na vitrine.")
    if quantidade <= 0:
        raise BusinessRuleError("Quantidade deve ser maior que zero.")
    if custo_unitario is None:
        custo_unitario = recipe_cost(receita)["custo_unitario"]
    if custo_unitario < 0:
        raise BusinessRuleError("Custo não pode ser negativo.")

    stock, _ = RecipeStock.objects.select_for_update().get_or_create(user=user, receita=receita)
    if not stock.ativo:
        # Reactivated stock starts over
        stock.ativo = True
        stock.quantidade_atual = ZERO
    stock.custo_unitario_medio = weighted_average_cost(
        stock.quantidade_atual, stock.custo_unitario_medio, quantidade, custo_unitario
    )
    stock.quantidade_atual += quantidade
    if quantidade_minima:
        stock.quantidade_minima = quantidade_minima
    if unidade:
        stock.unidade = unidade
    stock.data_ultima_movimentacao = timezone.now()
    stock.save()

    movement = RecipeStockMovement.objects.create(
        user=user,
        receita=receita,
        tipo=RecipeStockMovement.TIPO_ENTRADA,
        quantidade=quantidade,
        custo_unitario=custo_unitario,
        observacao=observacao or "",
        data=data or timezone.localdate(),
    )
    logger.info("Showcase entry of %s x recipe %s for user %s", quantidade, receita.pk, user.pk)
    return movement


@transaction.atomic
def register_recipe_exit(user, receita: Recipe, tipo, quantidade, preco_venda=None,
                         observacao="", data=None) -> RecipeStockMovement:
    if tipo not in RecipeStockMovement.TIPOS_SAIDA:
        raise BusinessRuleError(f"Tipo de saída inválido: {tipo}.")
    if quantidade <= 0:
        raise BusinessRuleError("Quantidade deve ser maior que zero.")

    stock = RecipeStock.objects.select_for_update().filter(user=user, receita=receita, ativo=True).first()
    disponivel = stock.quantidade_atual if stock else ZERO
    if disponivel < quantidade:
        raise BusinessRuleError(
            f"Quantidade insuficiente em estoque para {receita.nome}. Disponível: {disponivel}"
        )

    if tipo == RecipeStockMovement.TIPO_VENDA:
        preco_venda = receita.preco_venda if preco_venda is None else preco_venda
    else:
        preco_venda = ZERO

    stock.quantidade_atual -= quantidade
    stock.data_ultima_movimentacao = timezone.now()
    stock.save(update_fields=["quantidade_atual", "data_ultima_movimentacao", "updated_at"])

    movement = RecipeStockMovement.objects.create(
        user=user,
        receita=receita,
        tipo=tipo,
        quantidade=quantidade,
        custo_unitario=stock.custo_unitario_medio,
        preco_venda=preco_venda,
        observacao=observacao or "",
        data=data or timezone.localdate(),
    )
    logger.info("Showcase %s of %s x recipe %s for user %s", tipo, quantidade, receita.pk, user.pk)
    return movement


def showcase_summary(user) -> dict:
    stocks = RecipeStock.objects.filter(user=user, ativo=True)
    value = stocks.aggregate(
        total=Sum(F("quantidade_atual") * F("custo_unitario_medio"),
                  output_field=DecimalField(max_digits=20, decimal_places=4))
    )["total"] or ZERO
    return {
        "total_receitas": stocks.count(),
        "estoque_baixo": stocks.filter(quantidade_atual__gt=0, quantidade_atual__lte=F("quantidade_minima")).count(),
        "sem_estoque": stocks.filter(quantidade_atual__lte=0).count(),
        "valor_total_estoque": value.quantize(MONEY),
    }


def _sum_when(condition, expression):
    field = DecimalField(max_digits=20, decimal_places=4)
    return Sum(Case(When(condition, then=expression), default=Value(ZERO), output_field=field), output_field=field)


def movement_totals(queryset) -> dict:
    """Entries, exits, cost of entries and sales revenue over a filtered history."""
    entrada = Q(tipo=RecipeStockMovement.TIPO_ENTRADA)
    totals = queryset.aggregate(
        entradas=_sum_when(entrada, F("quantidade")),
        saidas=_sum_when(~entrada, F("quantidade")),
        custo_total=_sum_when(entrada, F("quantidade") * F("custo_unitario")),
        venda_total=_sum_when(Q(tipo=RecipeStockMovement.TIPO_VENDA), F("quantidade") * F("preco_venda")),
    )
    return {
        "entradas": totals["entradas"] or ZERO,
        "saidas": totals["saidas"] or ZERO,
        "custo_total": (totals["custo_total"] or ZERO).quantize(MONEY),
        "venda_total": (totals["venda_total"] or ZERO).quantize(MONEY),
    }
