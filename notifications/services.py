"""
Daily notification sweep.

Low-stock warnings are raised per product and unpriced-recipe reminders
per account; both are skipped when an equivalent notification was created
in the last 24 hours.  Read notifications older than 30 days are deleted.
"""
import logging
from collections import defaultdict
from datetime import timedelta

from django.db.models import F, Q
from django.utils import timezone

from inventory.models import Product
from recipes.models import Recipe
from .models import Notification

logger = logging.getLogger(__name__)

LOW_STOCK_TITLE = "🔔 Estoque Baixo"
PRICING_TITLE = "💰 Precificação Pendente"
DEDUP_WINDOW = timedelta(hours=24)
RETENTION = timedelta(days=30)


def notify_low_stock(now):
    since = now - DEDUP_WINDOW
    products = Product.objects.filter(
        ativo=True, estoque_minimo__isnull=False, estoque_atual__lte=F("estoque_minimo")
    )
    created = 0
    for product in products:
        recent = Notification.objects.filter(
            user_id=product.user_id,
            related_id=str(product.pk),
            type=Notification.TYPE_WARNING,
            created_at__gte=since,
        )
        if recent.exists():
            continue
        Notification.objects.create(
            user_id=product.user_id,
            title=LOW_STOCK_TITLE,
            message=(
                f'O produto "{product.nome}" está com estoque baixo '
                f"({product.estoque_atual.normalize():f} {product.unidade_compra}). Recomendamos reabastecer."
            ),
            type=Notification.TYPE_WARNING,
            related_id=str(product.pk),
        )
        created += 1
    return created


def notify_unpriced_recipes(now):
    since = now - DEDUP_WINDOW
    by_user = defaultdict(list)
    for recipe in Recipe.objects.filter(Q(preco_venda__isnull=True) | Q(preco_venda=0)).only("id", "nome", "user_id"):
        by_user[recipe.user_id].append(recipe)

    created = 0
    for user_id, recipes in by_user.items():
        recent = Notification.objects.filter(
            user_id=user_id, type=Notification.TYPE_INFO, title=PRICING_TITLE, created_at__gte=since
        )
        if recent.exists():
            continue
        if len(recipes) == 1:
            message = f'A receita "{recipes[0].nome}" não possui preço de venda definido.'
        else:
            message = f"Você tem {len(recipes)} receitas sem preço de venda definido."
        Notification.objects.create(
            user_id=user_id,
            title=PRICING_TITLE,
            message=f"{message} Configure os preços para maximizar seus lucros.",
            type=Notification.TYPE_INFO,
        )
        created += 1
    return created


def purge_read(now):
    deleted, _ = Notification.objects.filter(read=True, created_at__lt=now - RETENTION).delete()
    return deleted


def run_daily(now=None) -> dict:
    now = now or timezone.now()
    result = {
        "low_stock": notify_low_stock(now),
        "unpriced_recipes": notify_unpriced_recipes(now),
        "deleted": purge_read(now),
    }
    logger.info("Daily notifications: %s", result)
    return result
