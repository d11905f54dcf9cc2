"""
Plan gating.

Resolves the plan a user is actually entitled to (an expired plan falls
back to free), counts current usage per resource and raises
`PlanLimitExceeded` before a create would go over the plan's limit.
Platform admins are never limited.
"""
from __future__ import annotations

from django.apps import apps
from django.db import transaction
from django.utils import timezone

from common.exceptions import PlanLimitExceeded
from common.permissions import is_platform_admin
from .plans import (
    PLAN_CONFIGS,
    PLAN_FREE,
    RESOURCE_MARKUPS,
    RESOURCE_MOVEMENTS,
    RESOURCE_PDF_EXPORTS,
    RESOURCE_PRODUCTS,
    RESOURCE_RECIPES,
    RESOURCES,
    UNLIMITED,
    normalize_plan,
    plan_at_least,
    plan_limit,
)


def effective_plan(profile) -> str:
    if profile is None:
        return PLAN_FREE
    plan = normalize_plan(profile.plan, PLAN_FREE)
    if plan != PLAN_FREE and profile.plan_expired:
        return PLAN_FREE
    return plan


def _user_plan(user) -> str:
    return effective_plan(getattr(user, "profile", None))


def current_usage(user, resource: str) -> int:
    if resource == RESOURCE_PRODUCTS:
        Product = apps.get_model("inventory", "Product")
        return Product.objects.filter(user=user, ativo=True).count()
    if resource == RESOURCE_RECIPES:
        Recipe = apps.get_model("recipes", "Recipe")
        return Recipe.objects.filter(user=user).count()
    if resource == RESOURCE_MARKUPS:
        MarkupBlock = apps.get_model("costing", "MarkupBlock")
        return MarkupBlock.objects.filter(user=user).exclude(tipo=MarkupBlock.TIPO_SUB_RECEITA).count()
    if resource == RESOURCE_MOVEMENTS:
        StockMovement = apps.get_model("inventory", "StockMovement")
        return StockMovement.objects.filter(user=user).count()
    if resource == RESOURCE_PDF_EXPORTS:
        profile = user.profile
        # A counter whose window has lapsed (or never started) is reset on the next export.
        if profile.pdf_exports_reset_at is None or timezone.now() >= profile.pdf_exports_reset_at:
            return 0
        return profile.pdf_exports_count
    raise ValueError(f"Unknown resource: {resource}")


def check_limit(user, resource: str, adding: int = 1) -> None:
    """Raise PlanLimitExceeded if adding `adding` items would exceed the plan."""
    if is_platform_admin(user):
        return
    plan = _user_plan(user)
    limit = plan_limit(plan, resource)
    if limit == UNLIMITED:
        return
    current = current_usage(user, resource)
    if current + adding > limit:
        raise PlanLimitExceeded(resource=resource, limit=limit, current=current, plan=plan)


def has_access(user, required_plan: str) -> bool:
    if is_platform_admin(user):
        return True
    return plan_at_least(_user_plan(user), required_plan)


def usage_summary(user) -> dict:
    plan = _user_plan(user)
    unlimited = is_platform_admin(user)
    resources = {}
    for resource in RESOURCES:
        limit = UNLIMITED if unlimited else plan_limit(plan, resource)
        used = current_usage(user, resource)
        resources[resource] = {
            "used": used,
            "limit": limit,
            "remaining": None if limit == UNLIMITED else max(limit - used, 0),
        }
    return {
        "plan": plan,
        "plan_name": PLAN_CONFIGS[plan]["name"],
        "plan_expires_at": user.profile.plan_expires_at,
        "is_admin": unlimited,
        "resources": resources,
    }


def consume_pdf_export(user) -> int:
    """Count one PDF export against the monthly quota; returns the new count."""
    Profile = apps.get_model("users", "UserProfile")
    with transaction.atomic():
        profile = Profile.objects.select_for_update().get(user=user)
        if profile.reset_pdf_exports_if_due():
            profile.save(update_fields=["pdf_exports_count", "pdf_exports_reset_at", "updated_at"])
        if not is_platform_admin(user):
            plan = effective_plan(profile)
            limit = plan_limit(plan, RESOURCE_PDF_EXPORTS)
            if limit != UNLIMITED and profile.pdf_exports_count + 1 > limit:
                raise PlanLimitExceeded(
                    resource=RESOURCE_PDF_EXPORTS,
                    limit=limit,
                    current=profile.pdf_exports_count,
                    plan=plan,
                )
        profile.pdf_exports_count += 1
        profile.save(update_fields=["pdf_exports_count", "updated_at"])
        return profile.pdf_exports_count
