"""
Recipe cost formulas.

Every amount is derived from the current product costs, so a recipe's
cost follows the stock ledger without being re-saved.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
MONEY = Decimal("0.01")
UNIT = Decimal("0.0001")
DEFAULT_HOURS_PER_DAY = Decimal("8")


def _q(value: Decimal, exp=MONEY) -> Decimal:
    return value.quantize(exp, rounding=ROUND_HALF_UP)


def product_unit_cost(product) -> Decimal:
    """Cost of one usage unit of a stock product."""
    return product.custo_por_unidade_uso


def sub_recipe_unit_cost(recipe) -> Decimal:
    price = recipe.preco_venda or ZERO
    if recipe.rendimento_valor and recipe.rendimento_valor > 0:
        return price / recipe.rendimento_valor
    return price


def labor_hours(tempo, unidade, horas_por_dia=None) -> Decimal:
    tempo = Decimal(str(tempo or 0))
    if unidade == "minutos":
        return tempo / 60
    if unidade == "dias":
        return tempo * (horas_por_dia or DEFAULT_HOURS_PER_DAY)
    return tempo


def labor_value(custo_por_hora, tempo, unidade, horas_por_dia=None) -> Decimal:
    return _q(Decimal(str(custo_por_hora or 0)) * labor_hours(tempo, unidade, horas_por_dia))


def _line(nome, quantidade, unit_cost, **extra):
    return {
        "nome": nome,
        "quantidade": quantidade,
        "custo_unitario": _q(unit_cost, UNIT),
        "custo_total": _q(quantidade * unit_cost),
        **extra,
    }


def recipe_cost(recipe) -> dict:
    """Full cost breakdown of a recipe."""
    ingredientes = [
        _line(i.produto.nome, i.quantidade, product_unit_cost(i.produto),
              produto=i.produto_id, unidade=i.produto.unidade_uso or i.produto.unidade_compra)
        for i in recipe.ingredientes.select_related("produto")
    ]
    embalagens = [
        _line(e.produto.nome, e.quantidade, product_unit_cost(e.produto),
              produto=e.produto_id, unidade=e.produto.unidade_uso or e.produto.unidade_compra)
        for e in recipe.embalagens.select_related("produto")
    ]
    sub_receitas = [
        _line(s.sub_receita.nome, s.quantidade, sub_recipe_unit_cost(s.sub_receita),
              sub_receita=s.sub_receita_id, unidade=s.unidade)
        for s in recipe.sub_receitas.select_related("sub_receita")
    ]
    mao_obra = [
        {"descricao": m.descricao, "tempo": m.tempo, "unidade_tempo": m.unidade_tempo,
         "custo_por_hora": m.custo_por_hora, "valor_total": m.valor_total}
        for m in recipe.mao_obra.all()
    ]

    custo_ingredientes = sum((line["custo_total"] for line in ingredientes), ZERO)
    custo_embalagens = sum((line["custo_total"] for line in embalagens), ZERO)
    custo_sub_receitas = sum((line["custo_total"] for line in sub_receitas), ZERO)
    custo_mao_obra = sum((line["valor_total"] for line in mao_obra), ZERO)
    custo_total = custo_ingredientes + custo_sub_receitas + custo_embalagens + custo_mao_obra

    rendimento = recipe.rendimento_valor or ZERO
    custo_unitario = custo_total / rendimento if rendimento > 0 else custo_total

    result = {
        "ingredientes": ingredientes,
        "embalagens": embalagens,
        "sub_receitas": sub_receitas,
        "mao_obra": mao_obra,
        "custo_ingredientes": _q(custo_ingredientes),
        "custo_embalagens": _q(custo_embalagens),
        "custo_sub_receitas": _q(custo_sub_receitas),
        "custo_mao_obra": _q(custo_mao_obra),
        "custo_total": _q(custo_total),
        "custo_unitario": _q(custo_unitario, UNIT),
        "preco_venda": recipe.preco_venda,
    }
    result.update(profitability(recipe.preco_venda, custo_total, getattr(recipe.markup, "margem_lucro", None)))
    return result


def profitability(preco, custo, margem_lucro=None) -> dict:
    preco = preco or ZERO
    if preco <= 0:
        return {"margem": None, "lucro_bruto": None, "lucro_liquido": None}
    lucro_bruto = preco - custo
    lucro_liquido = lucro_bruto * (margem_lucro or ZERO) / 100
    return {
        "margem": _q((preco - custo) / preco * 100),
        "lucro_bruto": _q(lucro_bruto),
        "lucro_liquido": _q(lucro_liquido),
    }


def price_from_markup(custo_total, markup_aplicado) -> Decimal:
    return _q(Decimal(str(custo_total)) * Decimal(str(markup_aplicado or 1)))
