"""
Custom JWT authentication middleware for Django Channels.

This middleware extracts a JWT access token either from the WebSocket's
`Authorization: Bearer <token>` header or from a `token` query parameter.
It validates the token using SimpleJWT and populates `scope['user']` with
the corresponding Django user instance.  Anonymous users will see
`scope['user']` set to an `AnonymousUser` if authentication fails.
"""

import logging
import urllib.parse
from typing import Callable

from channels.auth import AuthMiddlewareStack
from channels.middleware import BaseMiddleware
from channels.db import database_sync_to_async
from django.contrib.auth.models import AnonymousUser
from django.contrib.auth import get_user_model
from django.db import close_old_connections
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.exceptions import TokenError

logger = logging.getLogger(__name__)
User = get_user_model()


@database_sync_to_async
def get_user_from_token(token):
    """Validate token and return user (sync function wrapped for async use)."""
    try:
        payload = AccessToken(token)
    except TokenError as exc:
        logger.debug("Rejected websocket token: %s", exc)
        return None
    user_id = payload.get("user_id")
    if not user_id:
        return None
    return User.objects.filter(pk=user_id, is_active=True).first()


class _JWTMiddleware(BaseMiddleware):
    """Low-level middleware to handle JWT tokens in a WebSocket scope."""

    async def __call__(self, scope, receive, send):
        headers = dict(scope.get("headers", []))
        token = None

        auth_header = headers.get(b"authorization", b"").decode()
        if auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1].strip()

        # Browsers cannot set headers on websockets; accept ?token=
        if not token:
            qs = scope.get("query_string", b"").decode()
            params = urllib.parse.parse_qs(qs)
            token = params.get("token", [None])[0]

        scope["user"] = AnonymousUser()

        if token:
            user = await get_user_from_token(token)
            if user:
                scope["user"] = user

        close_old_connections()
        return await super().__call__(scope, receive, send)


def JWTAuthMiddlewareStack(inner: Callable):
    """Entry point for the middleware stack used by Channels routing."""
    return _JWTMiddleware(AuthMiddlewareStack(inner))
