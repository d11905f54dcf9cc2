import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .consumers import user_group
from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Notification)
def push_notification(sender, instance: Notification, created, **kwargs):
    """Broadcast a new notification to the owner's open websockets."""
    if not created:
        return
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return  # Channels not configured

    payload = dict(NotificationSerializer(instance).data)

    def send():
        try:
            async_to_sync(channel_layer.group_send)(
                user_group(instance.user_id),
                {"type": "notification.created", "notification": payload},
            )
        except Exception:
            logger.exception("Failed to push notification %s", instance.pk)

    # Sent only once the row is committed.
    transaction.on_commit(send)
