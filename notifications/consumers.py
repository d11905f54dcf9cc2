from channels.generic.websocket import AsyncJsonWebsocketConsumer


def user_group(user_id) -> str:
    return f"notifications_{user_id}"


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Pushes each new notification of the connected user."""

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4401)
            return
        self.group_name = user_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    # use: channel_layer.group_send(group, {"type": "notification.created", "notification": {...}})
    async def notification_created(self, event):
        await self.send_json({"type": "notification", "notification": event["notification"]})
