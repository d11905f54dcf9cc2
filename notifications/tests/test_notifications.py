"""
Tests for the notification panel endpoints, the daily sweep and the
websocket push.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from inventory.models import Product
from notifications import services
from notifications.consumers import user_group
from notifications.models import Notification
from recipes.models import Recipe

URL = "/api/notifications/"


def _notify(user, **extra):
    data = {"title": "Olá", "message": "Bem-vindo", "type": Notification.TYPE_INFO}
    data.update(extra)
    return Notification.objects.create(user=user, **data)


@pytest.mark.django_db
def test_list_only_own_notifications(auth_client, user, other_user):
    _notify(user)
    _notify(other_user)
    resp = auth_client.get(URL)
    assert resp.status_code == 200
    assert resp.json()["count"] == 1


@pytest.mark.django_db
def test_mark_read_and_unread_count(auth_client, user):
    first = _notify(user)
    _notify(user)
    assert auth_client.get(f"{URL}unread-count/").json() == {"count": 2}

    resp = auth_client.post(f"{URL}{first.id}/read/")
    assert resp.status_code == 200
    assert resp.json()["read"] is True
    assert auth_client.get(f"{URL}unread-count/").json() == {"count": 1}

    resp = auth_client.post(f"{URL}read-all/")
    assert resp.json() == {"updated": 1}
    assert auth_client.get(f"{URL}unread-count/").json() == {"count": 0}


@pytest.mark.django_db
def test_cannot_read_someone_elses_notification(auth_client, other_user):
    foreign = _notify(other_user)
    assert auth_client.post(f"{URL}{foreign.id}/read/").status_code == 404


@pytest.mark.django_db
def test_low_stock_warning_is_deduplicated(user):
    product = Product.objects.create(
        user=user, codigo_interno=1, nome="Açúcar", estoque_atual=Decimal("2"), estoque_minimo=Decimal("5")
    )
    Product.objects.create(
        user=user, codigo_interno=2, nome="Sal", estoque_atual=Decimal("9"), estoque_minimo=Decimal("5")
    )

    assert services.notify_low_stock(timezone.now()) == 1
    warning = Notification.objects.get(type=Notification.TYPE_WARNING)
    assert warning.related_id == str(product.id)
    assert "Estoque Baixo" in warning.title
    assert '"Açúcar"' in warning.message

    assert services.notify_low_stock(timezone.now()) == 0

    Notification.objects.update(created_at=timezone.now() - timedelta(hours=25))
    assert services.notify_low_stock(timezone.now()) == 1


@pytest.mark.django_db
def test_unpriced_recipes_once_per_day(user, other_user):
    Recipe.objects.create(user=user, numero_sequencial=1, nome="Bolo")
    Recipe.objects.create(user=user, numero_sequencial=2, nome="Torta")
    Recipe.objects.create(user=other_user, numero_sequencial=1, nome="Pão")
    Recipe.objects.create(user=other_user, numero_sequencial=2, nome="Brownie", preco_venda=Decimal("12"))

    assert services.notify_unpriced_recipes(timezone.now()) == 2
    assert "2 receitas sem preço" in Notification.objects.get(user=user).message
    assert '"Pão"' in Notification.objects.get(user=other_user).message
    assert services.notify_unpriced_recipes(timezone.now()) == 0


@pytest.mark.django_db
def test_old_read_notifications_are_purged(user):
    old_read = _notify(user, read=True)
    old_unread = _notify(user)
    recent_read = _notify(user, read=True)
    month_ago = timezone.now() - timedelta(days=31)
    Notification.objects.filter(pk__in=[old_read.pk, old_unread.pk]).update(created_at=month_ago)

    result = services.run_daily()
    assert result["deleted"] == 1
    assert set(Notification.objects.values_list("pk", flat=True)) == {old_unread.pk, recent_read.pk}


@pytest.mark.django_db
def test_new_notification_is_pushed_to_user_group(user, django_capture_on_commit_callbacks):
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(user_group(user.id), channel)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        notification = _notify(user, title="Estoque atualizado")
    assert len(callbacks) == 1
    message = async_to_sync(layer.receive)(channel)
    assert message["type"] == "notification.created"
    assert message["notification"]["id"] == notification.id
    assert message["notification"]["title"] == "Estoque atualizado"
    async_to_sync(layer.group_discard)(user_group(user.id), channel)


@pytest.mark.django_db
def test_push_is_not_sent_when_transaction_rolls_back(user, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        with pytest.raises(RuntimeError):
            with transaction.atomic():
                _notify(user, title="Descartada")
                raise RuntimeError("rollback")
    assert callbacks == []
    assert not Notification.objects.filter(title="Descartada").exists()
