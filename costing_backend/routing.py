"""
Project-level Channels routing configuration.

This module collects the WebSocket routes of every app.  The ASGI
application wraps them with the JWT authentication middleware stack.
"""
from notifications.routing import websocket_urlpatterns as notifications_ws

websocket_urlpatterns = [
    *notifications_ws,
]
