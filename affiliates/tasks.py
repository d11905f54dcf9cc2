"""
Celery tasks for the affiliates app.
"""
from celery import shared_task

from . import services


@shared_task
def sync_affiliate_sales(days=None) -> dict:
    """Periodic catch-up for affiliate sales the webhook may have missed."""
    return services.sync_affiliate_sales(days)
