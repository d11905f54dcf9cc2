"""
Stock operations for the inventory app.

`finalize_movement` is the only code path that changes `estoque_atual`:
it locks the affected products, validates the whole cart and then writes
the receipt, the movements and the new stock levels in one transaction.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, ExpressionWrapper, F, Max, Sum
from django.utils import timezone

from billing.limits import check_limit
from billing.plans import RESOURCE_MOVEMENTS
from common.exceptions import BusinessRuleError
from users.models import UserProfile
from .models import MovementReceipt, Product, StockMovement, below_minimum_q

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")


def next_codigo_interno(user) -> int:
    UserProfile.objects.lock(user)
    current = Product.objects.filter(user=user).aggregate(m=Max("codigo_interno"))["m"]
    return (current or 0) + 1


def next_receipt_number(user) -> int:
    UserProfile.objects.lock(user)
    current = MovementReceipt.objects.filter(user=user).aggregate(m=Max("numero"))["m"]
    return (current or 0) + 1


def _validate_item(item, index):
    tipo = item.get("tipo")
    motivo = (item.get("motivo") or "").strip()
    quantidade = Decimal(str(item.get("quantidade") or 0))
    label = f"Item {index + 1}"
    if tipo not in (StockMovement.TIPO_ENTRADA, StockMovement.TIPO_SAIDA):
        raise BusinessRuleError(f"{label}: tipo de movimentação inválido.")
    allowed = StockMovement.MOTIVOS_ENTRADA if tipo == StockMovement.TIPO_ENTRADA else StockMovement.MOTIVOS_SAIDA
    if motivo not in allowed:
        raise BusinessRuleError(f"{label}: motivo inválido para {tipo}.")
    if quantidade <= 0:
        raise BusinessRuleError(f"{label}: quantidade deve ser maior que zero.")
    return tipo, motivo, quantidade


@transaction.atomic
def finalize_movement(user, items, responsavel, origem="", observacao="", data_hora=None) -> MovementReceipt:
    """Apply a cart of stock entries/exits and issue its receipt.

    Each item is a dict with `produto` (id), `tipo`, `motivo`, `quantidade`
    and optionally `custo_aplicado` (defaults to the product's unit cost).
    """
    if not items:
        raise BusinessRuleError("Adicione pelo menos um item à movimentação.")
    responsavel = (responsavel or "").strip()
    if not responsavel:
        raise BusinessRuleError("Informe o responsável pela movimentação.")
    check_limit(user, RESOURCE_MOVEMENTS, adding=len(items))

    product_ids = {int(item["produto"]) for item in items}
    products = {
        p.pk: p
        for p in Product.objects.select_for_update().filter(user=user, pk__in=product_ids, ativo=True)
    }
    missing = product_ids - products.keys()
    if missing:
        raise BusinessRuleError(f"Produto não encontrado: {sorted(missing)}")

    # Validate the whole cart against running balances before writing
    planned = []
    balances = {pk: p.estoque_atual for pk, p in products.items()}
    for index, item in enumerate(items):
        tipo, motivo, quantidade = _validate_item(item, index)
        product = products[int(item["produto"])]
        custo = item.get("custo_aplicado")
        custo = product.custo_unitario if custo in (None, "") else Decimal(str(custo))
        if custo < 0:
            raise BusinessRuleError(f"Item {index + 1}: custo não pode ser negativo.")
        if tipo == StockMovement.TIPO_SAIDA:
            if balances[product.pk] < quantidade:
                raise BusinessRuleError(
                    f"Estoque insuficiente para {product.nome}. Disponível: {balances[product.pk]}"
                )
            balances[product.pk] -= quantidade
        else:
            balances[product.pk] += quantidade
        planned.append((product, tipo, motivo, quantidade, custo))

    tipos = {tipo for _, tipo, _, _, _ in planned}
    receipt_tipo = tipos.pop() if len(tipos) == 1 else MovementReceipt.TIPO_ENTRADA
    now = data_hora or timezone.now()
    receipt = MovementReceipt.objects.create(
        user=user,
        numero=next_receipt_number(user),
        tipo=receipt_tipo,
        responsavel=responsavel,
        origem=origem or "",
        observacao=observacao or "",
        data_hora=now,
    )

    total = Decimal("0")
    movements = []
    for product, tipo, motivo, quantidade, custo in planned:
        subtotal = (quantidade * custo).quantize(MONEY)
        total += subtotal
        movements.append(StockMovement(
            user=user,
            produto=product,
            comprovante=receipt,
            tipo=tipo,
            motivo=motivo,
            quantidade=quantidade,
            custo_aplicado=custo,
            subtotal=subtotal,
            responsavel=responsavel,
            origem=origem or "",
            observacao=observacao or "",
            data_hora=now,
        ))
        if tipo == StockMovement.TIPO_ENTRADA:
            product.estoque_atual += quantidade
            product.custo_unitario = custo
        else:
            product.estoque_atual -= quantidade
    StockMovement.objects.bulk_create(movements)
    for product in products.values():
        product.save(update_fields=["estoque_atual", "custo_unitario", "updated_at"])

    receipt.valor_total = total
    receipt.save(update_fields=["valor_total"])
    logger.info("Receipt #%s (%s) finalized for user %s with %d items", receipt.numero, receipt.tipo, user.pk, len(movements))
    return receipt


def stock_summary(user) -> dict:
    products = Product.objects.filter(user=user, ativo=True)
    value = products.aggregate(
        total=Sum(ExpressionWrapper(F("custo_unitario") * F("estoque_atual"),
                                    output_field=DecimalField(max_digits=20, decimal_places=4)))
    )["total"] or Decimal("0")
    return {
        "total_produtos": products.count(),
        "abaixo_minimo": products.filter(below_minimum_q()).count(),
        "valor_total_estoque": value.quantize(MONEY),
    }


def deactivate_product(product: Product) -> Product:
    product.ativo = False
    product.save(update_fields=["ativo", "updated_at"])
    return product


def get_or_create_named(model, user, names):
    """Resolve names to per-user Brand/Category rows, creating missing ones.

    Returns (objects, created_count).  Blank names and duplicates are skipped.
    """
    objects, created_count, seen = [], 0, set()
    for raw in names or []:
        nome = str(raw).strip()
        if not nome or nome.lower() in seen:
            continue
        seen.add(nome.lower())
        obj = model.objects.filter(user=user, nome__iexact=nome).first()
        if obj is None:
            obj = model.objects.create(user=user, nome=nome)
            created_count += 1
        objects.append(obj)
    return objects, created_count
