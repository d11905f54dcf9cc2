"""
Celery tasks for the notifications app.
"""
from celery import shared_task

from . import services


@shared_task
def run_daily_notifications() -> dict:
    return services.run_daily()
