"""
Celery tasks for the billing app.

Stripe webhook events are acknowledged immediately and processed here, so
slow Stripe API round-trips never hold the webhook request open.
"""
from __future__ import annotations

import logging

from celery import shared_task

from . import services
from .stripe_client import sget

logger = logging.getLogger(__name__)


@shared_task
def process_checkout_completed(session: dict) -> None:
    """Sync the subscription bought in a completed checkout session."""
    subscription_id = sget(session, "subscription")
    if not isinstance(subscription_id, str):
        subscription_id = sget(subscription_id, "id")
    metadata = sget(session, "metadata", {})
    if subscription_id:
        services.sync_subscription(
            subscription_id,
            explicit_plan=sget(metadata, "plan_type"),
            user_id=sget(metadata, "user_id"),
        )
    else:
        logger.info("Checkout session %s has no subscription", sget(session, "id"))

    if str(sget(metadata, "is_affiliate_sale", "")).lower() == "true":
        from affiliates.services import record_affiliate_sale

        record_affiliate_sale(session)


@shared_task
def process_invoice_paid(invoice: dict) -> None:
    services.record_paid_invoice(invoice)


@shared_task
def process_subscription_deleted(subscription: dict) -> None:
    count = services.mark_subscription_canceled(sget(subscription, "id"))
    logger.info("Subscription %s canceled (%d local rows)", sget(subscription, "id"), count)
