"""
Back-office operations on client accounts.

Plan and role changes are audited in `AdminAction`; an audit write that
fails is logged and never undoes the change itself.
"""
from __future__ import annotations

import json
import logging

import stripe
from django.apps import apps
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError, transaction
from django.utils import timezone

from billing.stripe_client import client, sget, sget_path
from common.exceptions import BusinessRuleError
from users.models import UserProfile, UserRole
from .models import AdminAction, BackupRecord

logger = logging.getLogger(__name__)

BACKUP_TABLES = (
    "users.userprofile",
    "users.userrole",
    "inventory.category",
    "inventory.brand",
    "inventory.supplier",
    "inventory.product",
    "inventory.movementreceipt",
    "inventory.stockmovement",
    "costing.fixedexpensecategory",
    "costing.fixedexpense",
    "costing.employee",
    "costing.salescharge",
    "costing.revenueentry",
    "costing.markupblock",
    "recipes.producttype",
    "recipes.recipe",
    "recipes.recipeingredient",
    "recipes.recipepackaging",
    "recipes.recipesubrecipe",
    "recipes.recipelabor",
    "recipes.recipestep",
    "recipes.recipestock",
    "recipes.recipestockmovement",
    "billing.subscription",
    "billing.invoice",
    "affiliates.affiliate",
    "affiliates.affiliatesale",
    "affiliates.affiliatecommission",
)


def audit(admin, target, action_type, old_value=None, new_value=None, reason=""):
    try:
        with transaction.atomic():
            return AdminAction.objects.create(
                admin_user=admin,
                target_user=target,
                action_type=action_type,
                old_value=old_value,
                new_value=new_value,
                reason=reason,
            )
    except DatabaseError:
        logger.exception("Audit record %s for user %s could not be saved", action_type, getattr(target, "pk", None))
        return None


def _active_subscription_warning(customer_id):
    if not customer_id:
        return None
    try:
        subscriptions = client().Subscription.list(customer=customer_id, status="active", limit=1)
    except stripe.StripeError as exc:
        logger.warning("Could not check Stripe subscriptions of %s: %s", customer_id, exc)
        return None
    subscription = sget_path(subscriptions, "data", 0)
    if subscription is None:
        return None
    return {
        "has_active_subscription": True,
        "subscription_id": sget(subscription, "id"),
        "message": "Usuário possui assinatura ativa no Stripe. Considere cancelar a assinatura no Stripe.",
    }


def update_user_plan(admin, target, plan, expires_at=None, reason="") -> dict:
    """Set a client's plan by hand, warning when Stripe still bills them."""
    profile, _ = UserProfile.objects.get_or_create(user=target)
    old_plan = profile.plan
    old_value = {"plan": old_plan, "plan_expires_at": profile.plan_expires_at}
    warning = _active_subscription_warning(profile.stripe_customer_id)

    profile.plan = plan
    profile.plan_expires_at = expires_at
    if warning is None:
        # No live Stripe billing: the plan is now a manual grant.
        profile.subscription_status = ""
    profile.save(update_fields=["plan", "plan_expires_at", "subscription_status", "updated_at"])
    logger.info("Admin %s changed plan of user %s: %s -> %s", admin.pk, target.pk, old_plan, plan)

    audit(
        admin,
        target,
        AdminAction.ACTION_PLAN_CHANGE,
        old_value=json.loads(json.dumps(old_value, cls=DjangoJSONEncoder)),
        new_value=json.loads(json.dumps({"plan": plan, "plan_expires_at": expires_at}, cls=DjangoJSONEncoder)),
        reason=reason,
    )
    return {
        "success": True,
        "message": "Plano atualizado com sucesso",
        "stripe_warning": warning,
        "old_plan": old_plan,
        "new_plan": plan,
        "expires_at": expires_at,
    }


@transaction.atomic
def set_roles(admin, target, roles, reason="") -> list:
    """Replace the platform roles of `target`."""
    roles = sorted(set(roles))
    if target.pk == admin.pk and UserRole.ROLE_ADMIN not in roles and not admin.is_superuser:
        raise BusinessRuleError("Você não pode remover seu próprio acesso de administrador.")
    old = sorted(target.roles.values_list("role", flat=True))
    target.roles.exclude(role__in=roles).delete()
    for role in roles:
        UserRole.objects.get_or_create(user=target, role=role)
    audit(admin, target, AdminAction.ACTION_ROLE_CHANGE, old_value={"roles": old}, new_value={"roles": roles}, reason=reason)
    return roles


def _dump_rows(model):
    return json.loads(json.dumps(list(model.objects.values()), cls=DjangoJSONEncoder))


def create_backup(admin, backup_type=BackupRecord.TYPE_FULL, tables=None) -> BackupRecord:
    """Count every table and keep the rows of small ones in a full backup.

    A table with more than `BACKUP_INLINE_ROW_LIMIT` rows only gets its
    count.  Failures mark the record as failed instead of raising.
    """
    tables = list(tables or BACKUP_TABLES)
    record = BackupRecord.objects.create(backup_type=backup_type, tables_included=tables, created_by=admin)
    limit = settings.BACKUP_INLINE_ROW_LIMIT
    counts, data = {}, {}
    try:
        for label in tables:
            model = apps.get_model(label)
            counts[label] = model.objects.count()
            if backup_type == BackupRecord.TYPE_FULL and counts[label] <= limit:
                data[label] = _dump_rows(model)
    except (LookupError, DatabaseError) as exc:
        logger.exception("Backup %s failed", record.pk)
        record.status = BackupRecord.STATUS_FAILED
        record.record_counts = counts
        record.error_message = str(exc)
        record.completed_at = timezone.now()
        record.save()
        return record

    record.status = BackupRecord.STATUS_COMPLETED
    record.record_counts = counts
    record.data = data or None
    record.file_size = len(json.dumps(data).encode("utf-8"))
    record.completed_at = timezone.now()
    record.save()
    logger.info("Backup %s completed: %d tables, %d bytes", record.pk, len(tables), record.file_size)
    return record
