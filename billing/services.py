"""
Billing operations: Stripe checkout, subscription sync and in-app coupons.

Functions here are called from views and Celery tasks.  Stripe payloads
are read through `sget` so both SDK objects and decoded webhook JSON work.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from common.exceptions import BusinessRuleError
from users.models import UserProfile
from .limits import effective_plan
from .models import CouponRedemption, Invoice, PromotionalCoupon, Subscription
from .plans import PLAN_FREE, PLAN_PROFESSIONAL, normalize_plan, price_key
from .stripe_client import (
    client,
    from_timestamp,
    sget,
    sget_path,
    subscription_period_end,
    subscription_product_id,
)

logger = logging.getLogger(__name__)
User = get_user_model()

PAID_STATUSES = (Subscription.STATUS_ACTIVE, Subscription.STATUS_TRIALING)


def plan_from_metadata(metadata, default=PLAN_PROFESSIONAL) -> str:
    metadata = metadata or {}
    raw = sget(metadata, "plan") or sget(metadata, "Plan") or sget(metadata, "PLAN") or sget(metadata, "plan_type")
    return normalize_plan(raw, default)


def find_customer_id(email: str):
    if not email:
        return None
    customers = client().Customer.list(email=email, limit=1)
    return sget_path(customers, "data", 0, "id")


def create_checkout_session(user, plan: str, billing: str, origin: str) -> dict:
    price_id = settings.STRIPE_PRICE_IDS.get(price_key(plan, billing))
    if not price_id:
        raise BusinessRuleError(f"Plano inválido: {plan} ({billing}).")

    stripe = client()
    customer_id = find_customer_id(user.email)
    params = {
        "line_items": [{"price": price_id, "quantity": 1}],
        "mode": "subscription",
        "success_url": f"{origin}/planos?success=true",
        "cancel_url": f"{origin}/planos?canceled=true",
        "metadata": {
            "user_id": str(user.id),
            "plan_type": plan,
            "billing_cycle": billing,
        },
    }
    if customer_id:
        params["customer"] = customer_id
    else:
        params["customer_email"] = user.email

    session = stripe.checkout.Session.create(**params)
    logger.info("Checkout session %s created for user %s (%s)", session["id"], user.id, price_key(plan, billing))
    return {"url": session["url"], "session_id": session["id"]}


def _resolve_user(user_id=None, email=None):
    if user_id:
        user = User.objects.filter(pk=user_id).first()
        if user:
            return user
    if email:
        return User.objects.filter(email__iexact=email).first()
    return None


def _apply_plan_to_profile(user, plan, status, period_end, customer_id=""):
    profile, _ = UserProfile.objects.get_or_create(user=user)
    if status in PAID_STATUSES:
        profile.plan = plan
        profile.plan_expires_at = period_end
    elif status == Subscription.STATUS_CANCELED:
        profile.plan = PLAN_FREE
        profile.plan_expires_at = None
    profile.subscription_status = status
    if customer_id:
        profile.stripe_customer_id = customer_id
    profile.save()


@transaction.atomic
def sync_subscription(subscription_id: str, explicit_plan=None, user_id=None) -> Subscription:
    """Fetch a subscription from Stripe and mirror it locally and on the profile."""
    stripe = client()
    subscription = stripe.Subscription.retrieve(subscription_id)
    customer_id = sget(subscription, "customer")
    if not isinstance(customer_id, str):
        customer_id = sget(customer_id, "id", "")

    email = ""
    if customer_id:
        customer = stripe.Customer.retrieve(customer_id)
        if sget(customer, "deleted"):
            raise ValueError(f"Customer {customer_id} deleted for subscription {subscription_id}")
        email = sget(customer, "email", "")

    plan = normalize_plan(explicit_plan) or normalize_plan(
        settings.STRIPE_PRODUCT_TO_PLAN.get(subscription_product_id(subscription) or "")
    ) or plan_from_metadata(sget(subscription, "metadata"))
    status = sget(subscription, "status", Subscription.STATUS_INCOMPLETE)
    period_end = subscription_period_end(subscription)
    user = _resolve_user(user_id=user_id or sget_path(subscription, "metadata", "user_id"), email=email)

    record, _ = Subscription.objects.update_or_create(
        stripe_subscription_id=subscription_id,
        defaults={
            "user": user,
            "customer_email": email,
            "stripe_customer_id": customer_id or "",
            "plan": plan,
            "status": status,
            "current_period_end": period_end,
        },
    )
    if user is not None:
        _apply_plan_to_profile(user, plan, status, period_end, customer_id or "")
    else:
        logger.warning("Subscription %s has no matching user (email=%s)", subscription_id, email)
    return record


@transaction.atomic
def record_paid_invoice(invoice: dict) -> Invoice:
    subscription_id = sget(invoice, "subscription")
    if not isinstance(subscription_id, str):
        subscription_id = sget(subscription_id, "id")
    if not subscription_id:
        subscription_id = sget_path(invoice, "parent", "subscription_details", "subscription")

    subscription = None
    if subscription_id:
        subscription = sync_subscription(subscription_id)
        Subscription.objects.filter(pk=subscription.pk).update(status=Subscription.STATUS_ACTIVE)

    amount = Decimal(sget(invoice, "amount_paid", 0)) / Decimal(100)
    record, _ = Invoice.objects.update_or_create(
        stripe_invoice_id=sget(invoice, "id"),
        defaults={
            "subscription": subscription,
            "user": subscription.user if subscription else None,
            "amount": amount,
            "currency": sget(invoice, "currency", settings.STRIPE_DEFAULT_CURRENCY),
            "status": "paid",
            "period_start": from_timestamp(sget(invoice, "period_start")),
            "period_end": from_timestamp(sget(invoice, "period_end")),
        },
    )
    return record


@transaction.atomic
def mark_subscription_canceled(subscription_id: str) -> int:
    updated = 0
    for sub in Subscription.objects.select_for_update().filter(stripe_subscription_id=subscription_id):
        sub.status = Subscription.STATUS_CANCELED
        sub.save(update_fields=["status", "updated_at"])
        if sub.user_id:
            _apply_plan_to_profile(sub.user, PLAN_FREE, Subscription.STATUS_CANCELED, None)
        updated += 1
    return updated


def _without_active_subscription(user, profile, customer_id=""):
    # Only a plan that came from a live Stripe subscription is taken back.
    if profile.subscription_status in PAID_STATUSES:
        _apply_plan_to_profile(user, PLAN_FREE, Subscription.STATUS_CANCELED, None, customer_id)
        plan = PLAN_FREE
    else:
        plan = effective_plan(profile)
    return {"subscribed": False, "plan": plan, "subscription_end": None}


def check_subscription(user) -> dict:
    """Ask Stripe for the user's active subscription and refresh the profile.

    Plans granted outside Stripe (admin changes, coupons) are left alone:
    only a profile still marked with a paid Stripe status is downgraded.
    """
    stripe = client()
    profile = user.profile
    customer_id = profile.stripe_customer_id or find_customer_id(user.email)
    if not customer_id:
        return _without_active_subscription(user, profile)

    subscriptions = stripe.Subscription.list(customer=customer_id, status="active", limit=1)
    subscription = sget_path(subscriptions, "data", 0)
    if subscription is None:
        return _without_active_subscription(user, profile, customer_id)

    plan = normalize_plan(settings.STRIPE_PRODUCT_TO_PLAN.get(subscription_product_id(subscription) or ""), PLAN_FREE)
    period_end = subscription_period_end(subscription)
    _apply_plan_to_profile(user, plan, Subscription.STATUS_ACTIVE, period_end, customer_id)
    return {"subscribed": True, "plan": plan, "subscription_end": period_end}


def subscription_check_failed(user, error) -> dict:
    """Fallback when Stripe cannot be reached: treat it as no active subscription."""
    result = _without_active_subscription(user, user.profile)
    result["error"] = str(error)
    return result


def apply_promotional_coupon(user, code: str) -> dict:
    with transaction.atomic():
        coupon = PromotionalCoupon.objects.select_for_update().filter(code=code, is_active=True).first()
        if coupon is None:
            raise BusinessRuleError("Cupom inválido ou inativo")
        now = timezone.now()
        if coupon.expires_at and coupon.expires_at < now:
            raise BusinessRuleError("Cupom expirado")
        if coupon.max_redemptions and coupon.times_redeemed >= coupon.max_redemptions:
            raise BusinessRuleError("Limite de usos do cupom atingido")
        if CouponRedemption.objects.filter(coupon=coupon, user=user).exists():
            raise BusinessRuleError("Você já utilizou este cupom")

        plan_granted = PLAN_PROFESSIONAL
        trial_ends_at = None
        if coupon.discount_type == PromotionalCoupon.TYPE_TRIAL and coupon.trial_days:
            if coupon.applies_to_plans:
                plan_granted = normalize_plan(coupon.applies_to_plans[0], PLAN_PROFESSIONAL)
            trial_ends_at = now + timedelta(days=coupon.trial_days)
            UserProfile.objects.filter(user=user).update(
                plan=plan_granted, plan_expires_at=trial_ends_at, subscription_status="", updated_at=now,
            )

        CouponRedemption.objects.create(
            coupon=coupon, user=user, plan_granted=plan_granted, trial_ends_at=trial_ends_at,
        )
        PromotionalCoupon.objects.filter(pk=coupon.pk).update(times_redeemed=F("times_redeemed") + 1)

    return {
        "success": True,
        "coupon": {
            "code": coupon.code,
            "discount_type": coupon.discount_type,
            "discount_value": coupon.discount_value,
            "trial_days": coupon.trial_days,
        },
        "plan_granted": plan_granted,
        "trial_ends_at": trial_ends_at,
    }
