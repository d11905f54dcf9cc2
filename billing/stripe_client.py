"""
Thin helpers around the `stripe` SDK.

The SDK is module-level configured; `client()` sets the API key from
settings right before use so tests and management commands can override
it.  `sget` reads a field from either a Stripe object or a plain dict
(webhook payloads are handled as decoded JSON).
"""
from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

import stripe
from django.conf import settings


def client():
    stripe.api_key = settings.STRIPE_SECRET_KEY
    return stripe


def sget(obj, key, default=None):
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def sget_path(obj, *path, default=None):
    for key in path:
        obj = sget(obj, key)
        if obj is None:
            return default
    return obj


def from_timestamp(value):
    """Stripe epoch seconds to an aware datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=dt_timezone.utc)


def subscription_period_end(subscription):
    # Newer API versions moved the period onto subscription items
    end = sget(subscription, "current_period_end")
    if end is None:
        end = sget_path(subscription, "items", "data", 0, "current_period_end")
    return from_timestamp(end)


def subscription_product_id(subscription):
    product = sget_path(subscription, "items", "data", 0, "price", "product")
    if isinstance(product, str) or product is None:
        return product
    return sget(product, "id")
